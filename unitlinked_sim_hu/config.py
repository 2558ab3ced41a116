"""TOML config loader with CLI > config > default resolution."""

import argparse
import logging
import sys
import tomllib
from collections.abc import Callable
from pathlib import Path

from unitlinked_sim_hu.params import SimulationParams
from unitlinked_sim_hu.plan import PlanInputs, base_year1_payment, build_yearly_plan, years_from_duration
from unitlinked_sim_hu.yields import PricePoint

DEFAULT_CONFIG_PATH = Path("config.toml")

DEFAULTS = {
    "product": "dm-pro",
    "variant": "",
    "currency": "HUF",
    "calculation_mode": "simple",
    "start_date": "",
    "duration_unit": "year",
    "duration": 10.0,
    "frequency": "monthly",
    "regular_payment": 20_000.0,
    "keep_yearly_payment": False,
    "annual_index": 0.0,
    "annual_yield": 5.0,
    "fund_mode": "flat",
    "fund_id": "",
    "upfront_cost": 0.0,
    "management_fee": 0.0,
    "asset_fee": 0.0,
    "admin_fee_monthly": 0.0,
    "tax_credit": None,  # None: product default
    "tax_credit_rate": 20.0,
    "tax_credit_cap": 0.0,
    "entry_age": 38,
    "death_benefit": 0.0,
    "no_product_defaults": False,
}

# Per-year tables: config file only, keyed by policy year
TABLE_KEYS = (
    "payment_by_year",
    "withdrawal_by_year",
    "index_by_year",
    "initial_cost_by_year",
    "redemption_fee_by_year",
    "bonus_amount_by_year",
)


def load_config(path: Path | None = None) -> dict:
    """Load TOML config file. Returns empty dict if file doesn't exist."""
    if path is None:
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        print(f"Hibás konfigurációs fájl: {path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    # TOML table keys are strings: [initial_cost_by_year] 1 = 50 → {1: 50.0}
    for key in TABLE_KEYS:
        if key in raw:
            raw[key] = {int(year): float(value) for year, value in raw[key].items()}
    # fund_prices = [["2024-01-02", 101.5], ...]
    if "fund_prices" in raw:
        raw["fund_prices"] = [PricePoint(str(d), float(p)) for d, p in raw["fund_prices"]]
    return raw


def create_parser(description: str) -> argparse.ArgumentParser:
    """Create argparse parser with shared simulation flags."""
    d = DEFAULTS
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", type=Path, default=None, help="Konfigurációs fájl (default: config.toml)")
    parser.add_argument("--product", type=str, default=None, help=f"Termékazonosító (default: {d['product']})")
    parser.add_argument("--variant", type=str, default=None, help="Termékváltozat, pl. wl12, pension, nn_motiva_168_eur")
    parser.add_argument("--currency", type=str, default=None, help=f"Deviza: HUF, EUR, USD (default: {d['currency']})")
    parser.add_argument("--calculation-mode", type=str, default=None, help="simple vagy calendar (default: simple)")
    parser.add_argument("--start-date", type=str, default=None, help="Kezdődátum naptári módban (ÉÉÉÉ-HH-NN)")
    parser.add_argument("--duration-unit", type=str, default=None, help="year, month vagy day (default: year)")
    parser.add_argument("--duration", type=float, default=None, help=f"Futamidő (default: {d['duration']:.0f})")
    parser.add_argument("--frequency", type=str, default=None, help="monthly, quarterly, half-yearly, yearly (default: monthly)")
    parser.add_argument("--regular-payment", type=float, default=None, help=f"Rendszeres díj fizetési periódusonként (default: {d['regular_payment']:,.0f})")
    parser.add_argument("--keep-yearly-payment", action="store_true", default=None, help="A rendszeres díjat havi összegként kezeli a gyakoriságtól függetlenül")
    parser.add_argument("--annual-index", type=float, default=None, help=f"Éves díjindexálás %% (default: {d['annual_index']})")
    parser.add_argument("--annual-yield", type=float, default=None, help=f"Éves hozam %% (default: {d['annual_yield']})")
    parser.add_argument("--fund-mode", type=str, default=None, help="flat, replay vagy averaged (default: flat)")
    parser.add_argument("--fund-id", type=str, default=None, help="Választott eszközalap azonosítója")
    parser.add_argument("--upfront-cost", type=float, default=None, help="Első éves szerzési költség %%")
    parser.add_argument("--management-fee", type=float, default=None, help="Éves vagyonkezelési díj %%")
    parser.add_argument("--asset-fee", type=float, default=None, help="Éves eszközarányos költség %%")
    parser.add_argument("--admin-fee-monthly", type=float, default=None, help="Havi adminisztrációs díj a 2. évtől")
    parser.add_argument("--tax-credit", action=argparse.BooleanOptionalAction, default=None, help="Adójóváírás be- vagy kikapcsolása (default: a termék szerint)")
    parser.add_argument("--tax-credit-rate", type=float, default=None, help=f"Adójóváírás mértéke %% (default: {d['tax_credit_rate']:.0f})")
    parser.add_argument("--tax-credit-cap", type=float, default=None, help="Éves adójóváírás felső határa (0: nincs)")
    parser.add_argument("--entry-age", type=int, default=None, help=f"Biztosított belépési életkora (default: {d['entry_age']})")
    parser.add_argument("--death-benefit", type=float, default=None, help="Haláleseti szolgáltatás összege")
    parser.add_argument("--no-product-defaults", action="store_true", default=None, help="A termék alapértelmezéseinek kikapcsolása")
    parser.add_argument("--verbose", "-v", action="store_true", help="Részletes naplózás")
    return parser


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def resolve(args: argparse.Namespace, config: dict) -> dict:
    """Resolve values with priority: CLI flag > config.toml > hardcoded default."""
    resolved = {}
    for key, default in DEFAULTS.items():
        cli_val = getattr(args, key, None)
        resolved[key] = cli_val if cli_val is not None else config.get(key, default)
    for key in TABLE_KEYS:
        resolved[key] = config.get(key, {})
    resolved["fund_prices"] = config.get("fund_prices", [])
    return resolved


def build_params(r: dict) -> SimulationParams:
    """Build SimulationParams from resolved config dict, expanding the payment plan."""
    years = years_from_duration(r["duration_unit"], r["duration"])
    plan = build_yearly_plan(
        PlanInputs(
            years=years,
            base_year1_payment=base_year1_payment(r["regular_payment"], r["frequency"], r["keep_yearly_payment"]),
            base_annual_index_percent=r["annual_index"],
            index_by_year=r.get("index_by_year", {}),
            payment_by_year=r.get("payment_by_year", {}),
            withdrawal_by_year=r.get("withdrawal_by_year", {}),
        )
    )
    cap = r["tax_credit_cap"]
    death_benefit = r["death_benefit"]
    return SimulationParams(
        currency=r["currency"],
        calculation_mode=r["calculation_mode"],
        start_date=r["start_date"] or None,
        duration_unit=r["duration_unit"],
        duration_value=r["duration"],
        annual_yield_percent=r["annual_yield"],
        fund_mode=r["fund_mode"],
        fund_price_series=list(r.get("fund_prices", [])),
        selected_fund_id=r["fund_id"] or None,
        frequency=r["frequency"],
        yearly_payments=plan.yearly_payments,
        yearly_withdrawals=plan.yearly_withdrawals,
        upfront_cost_percent=r["upfront_cost"],
        initial_cost_by_year=r.get("initial_cost_by_year") or None,
        yearly_management_fee_percent=r["management_fee"],
        asset_based_fee_percent=r["asset_fee"],
        admin_fee_monthly_amount=r["admin_fee_monthly"],
        enable_tax_credit=r["tax_credit"],
        tax_credit_rate_percent=r["tax_credit_rate"],
        tax_credit_cap_per_year=cap if cap > 0 else None,
        redemption_enabled=bool(r.get("redemption_fee_by_year")),
        redemption_fee_by_year=r.get("redemption_fee_by_year", {}),
        bonus_amount_by_year=r.get("bonus_amount_by_year", {}),
        insured_entry_age=r["entry_age"],
        risk_insurance_enabled=death_benefit > 0,
        risk_insurance_death_benefit_amount=death_benefit,
        product_variant=r["variant"] or None,
        disable_product_defaults=r["no_product_defaults"],
    )


def parse_args(
    description: str,
    add_args_fn: Callable[[argparse.ArgumentParser], None] | None = None,
) -> tuple[dict, argparse.Namespace]:
    """Parse CLI args, load config, resolve values, configure logging.

    Returns (resolved_dict, namespace). The namespace carries any extra
    flags added via add_args_fn.
    """
    parser = create_parser(description)
    if add_args_fn:
        add_args_fn(parser)
    args = parser.parse_args()
    setup_logging(args.verbose)
    config = load_config(args.config)
    return resolve(args, config), args
