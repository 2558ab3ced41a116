"""CLI entry point for chart generation."""

import sys
from pathlib import Path

from unitlinked_sim_hu.charts import plot_balance, plot_comparison
from unitlinked_sim_hu.comparison import rank_products
from unitlinked_sim_hu.config import build_params, create_parser, load_config, resolve, setup_logging
from unitlinked_sim_hu.registry import UnknownProductError, get_product


def _build_parser():
    parser = create_parser("Befektetési egységekhez kötött életbiztosítás - grafikonok")
    parser.add_argument(
        "--output", type=Path, default=Path("reports/charts"),
        help="Kimeneti könyvtár (default: reports/charts)",
    )
    parser.add_argument(
        "--no-compare", action="store_true",
        help="Ne készüljön termék-összehasonlító grafikon",
    )
    parser.add_argument(
        "--top", type=int, default=None,
        help="Az összehasonlításban szereplő termékek száma",
    )
    parser.add_argument(
        "--name", type=str, default="",
        help="Kimeneti fájlnév utótag (pl. fortis → balance-fortis.png)",
    )
    return parser


def main():
    parser = _build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    r = resolve(args, load_config(args.config))
    params = build_params(r)
    output_dir = args.output

    try:
        product = get_product(r["product"])
    except UnknownProductError as e:
        print(e, file=sys.stderr)
        raise SystemExit(2)

    print(f"Szimuláció: {product.LABEL}...", file=sys.stderr)
    for message in product.validate(params):
        print(f"  Figyelmeztetés: {message}", file=sys.stderr)
    result = product.calculate(params)
    if result.yearly:
        path = plot_balance(result, output_dir, name=args.name, title=product.LABEL)
        print(f"  → {path}", file=sys.stderr)
    else:
        print("  Üres futamidő: nincs grafikon", file=sys.stderr)

    if not args.no_compare:
        print("Termék-összehasonlítás...", file=sys.stderr)
        offers = rank_products(params, top=args.top)
        path = plot_comparison(offers, output_dir, name=args.name)
        print(f"  → {path}", file=sys.stderr)

    print("Kész", file=sys.stderr)


if __name__ == "__main__":
    main()
