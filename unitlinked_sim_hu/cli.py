"""CLI entry point for a single policy projection or a product comparison."""

import argparse
import sys

from unitlinked_sim_hu.comparison import TopOffer, rank_products
from unitlinked_sim_hu.config import build_params, parse_args
from unitlinked_sim_hu.params import SimulationParams
from unitlinked_sim_hu.products import Product
from unitlinked_sim_hu.registry import UnknownProductError, get_product
from unitlinked_sim_hu.scenarios import run_scenarios
from unitlinked_sim_hu.simulation import MonthRow, SimulationResult, YearRow


def _add_args(parser: argparse.ArgumentParser):
    parser.add_argument("--monthly", action="store_true", help="Havi bontás kiírása")
    parser.add_argument("--compare", action="store_true", help="Termékek rangsorolása visszavásárlási érték szerint")
    parser.add_argument("--top", type=int, default=None, help="A rangsor első N terméke")
    parser.add_argument("--scenarios", action="store_true", help="Pesszimista / alap / optimista hozam-forgatókönyvek")


def _print_header(product: Product, params: SimulationParams):
    print("=" * 100)
    print(f"{product.LABEL} ({product.INSURER}) - befektetési egységekhez kötött életbiztosítás")
    print(
        f"  Futamidő: {params.duration_value:g} {params.duration_unit} / Gyakoriság: {params.frequency}"
        f" / Hozam: {params.annual_yield_percent:g}% ({params.fund_mode}) / Deviza: {params.currency}"
    )
    if params.yearly_payments:
        print(f"  Első éves díj: {params.payment_for_year(1):,.0f} {params.currency}")
    if params.product_variant:
        print(f"  Változat: {params.product_variant}")
    print("=" * 100)
    print()


def _print_row(label: str, values: list, fmt: str = "{:>14,.0f}"):
    print(f"{label:<10} " + " ".join(fmt.format(v) for v in values))


def _print_yearly_table(rows: list[YearRow]):
    print("【Éves bontás】")
    print("-" * 100)
    print(
        f"{'Év':<10} {'Befizetés':>14} {'Hozam':>14} {'Költség':>14} "
        f"{'Bónusz':>14} {'Adójóváírás':>14} {'Egyenleg':>14} {'Visszavásárlás':>14}"
    )
    print("-" * 100)
    for row in rows:
        _print_row(
            row.period_label,
            [
                row.yearly_payment,
                row.interest,
                row.cost,
                row.bonus + row.wealth_bonus,
                row.tax_credit,
                row.end_balance,
                row.surrender_value,
            ],
        )
    print("-" * 100)


def _print_monthly_table(rows: list[MonthRow]):
    print("\n【Havi bontás】")
    print("-" * 100)
    print(f"{'Év/hó':<10} {'Befizetés':>14} {'Költség':>14} {'Hozam':>14} {'Egyenleg':>14}")
    print("-" * 100)
    for row in rows:
        _print_row(f"{row.year}/{row.month:02d}", [row.payment, row.cost_total, row.interest, row.end_balance])
    print("-" * 100)


def _print_summary(result: SimulationResult):
    print("\n【Összesítés】")
    print(f"  Összes befizetés:      {result.total_contributions:>16,.0f} {result.currency}")
    print(f"  Összes költség:        {result.total_costs:>16,.0f} {result.currency}")
    print(f"    ebből kockázati díj: {result.total_risk_insurance_cost:>16,.0f} {result.currency}")
    print(f"    ebből eszközarányos: {result.total_asset_based_cost:>16,.0f} {result.currency}")
    print(f"  Összes bónusz:         {result.total_bonus:>16,.0f} {result.currency}")
    print(f"  Összes adójóváírás:    {result.total_tax_credit:>16,.0f} {result.currency}")
    print(f"  Összes kivonás:        {result.total_withdrawals:>16,.0f} {result.currency}")
    print(f"  Nettó hozam:           {result.total_interest_net:>16,.0f} {result.currency}")
    print(f"  Záró egyenleg:         {result.end_balance:>16,.0f} {result.currency}")
    print(f"  Visszavásárlási érték: {result.surrender_value:>16,.0f} {result.currency}")


def _print_ranking(offers: list[TopOffer]):
    print("【Termékek visszavásárlási érték szerint】")
    print("-" * 100)
    print(f"{'#':<4} {'Termék':<28} {'Visszavásárlás':>16} {'Egyenleg':>16} {'Befizetés':>16} {'Arány':>9}")
    print("-" * 100)
    for rank, offer in enumerate(offers, start=1):
        print(
            f"{rank:<4} {offer.label:<28} {offer.surrender_value:>16,.0f} {offer.end_balance:>16,.0f} "
            f"{offer.total_contributions:>16,.0f} {offer.ratio_percent:>8.1f}%"
        )
    print("-" * 100)


def _print_scenarios(results: dict[str, SimulationResult]):
    print("【Hozam-forgatókönyvek】")
    print("-" * 80)
    print(f"{'Forgatókönyv':<14} {'Egyenleg':>16} {'Visszavásárlás':>16} {'Nettó hozam':>16}")
    print("-" * 80)
    for name, result in results.items():
        print(f"{name:<14} {result.end_balance:>16,.0f} {result.surrender_value:>16,.0f} {result.total_interest_net:>16,.0f}")
    print("-" * 80)


def main():
    """Run one projection (or a comparison) and print the tables."""
    r, args = parse_args("Befektetési egységekhez kötött életbiztosítás szimuláció", _add_args)
    params = build_params(r)

    if args.compare:
        offers = rank_products(params, top=args.top)
        _print_ranking(offers)
        return

    try:
        product = get_product(r["product"])
    except UnknownProductError as e:
        print(e, file=sys.stderr)
        raise SystemExit(2)

    errors = product.validate(params)
    if errors:
        for message in errors:
            print(f"Hiba: {message}", file=sys.stderr)
        raise SystemExit(1)

    if args.scenarios:
        _print_scenarios(run_scenarios(product.ID, params))
        return

    result = product.calculate(params)
    _print_header(product, params)
    _print_yearly_table(result.yearly)
    if args.monthly:
        _print_monthly_table(result.monthly)
    _print_summary(result)
    for note in product.APPROXIMATIONS:
        print(f"  Közelítés: {note}")


if __name__ == "__main__":
    main()
