"""TOML profile loader with CLI > config > default resolution."""

import argparse
import sys
import tomllib
from pathlib import Path

from pension_sim_jp.coverage import CoverageAssumptions, MAX_SICK_PAY_MONTHS, RETIREMENT_AGE
from pension_sim_jp.eligibility import PolicyMode, Scenario, ScenarioKind
from pension_sim_jp.household import Household, Person

DEFAULT_CONFIG_PATH = Path("config.toml")

PERSON_KEYS = ("age", "avg_monthly", "months", "deemed_300", "claim_age", "annual_income")

DEFAULTS = {
    "spouse_type": "couple",
    "husband_age": 38,
    "husband_avg_monthly": 450_000.0,
    "husband_months": 300,
    "husband_deemed_300": True,
    "husband_claim_age": 65,
    "husband_annual_income": 0.0,
    "wife_age": 35,
    "wife_avg_monthly": 250_000.0,
    "wife_months": 120,
    "wife_deemed_300": True,
    "wife_claim_age": 65,
    "wife_annual_income": 0.0,
    "children": "3",
    "scenario": "husband_death",
    "policy": "current",
    "disability_level": 2,
    "optimize_deferral": False,
    "living_expense": 300_000.0,
    "housing_loan": 0.0,
    "survivor_expense_ratio": 70.0,
    "disability_expense_ratio": 110.0,
    "work_income_ratio": 90.0,
    "savings": 0.0,
    "sick_pay_months": MAX_SICK_PAY_MONTHS,
    "funeral_cost": 1_000_000.0,
    "coverage_end_age": RETIREMENT_AGE,
}


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
        print(f"設定ファイルの読み込みに失敗: {path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    # Flatten [husband] / [wife] tables → husband_age, wife_months, ...
    for who in ("husband", "wife"):
        table = raw.pop(who, None)
        if isinstance(table, dict):
            for key, value in table.items():
                raw.setdefault(f"{who}_{key}", value)
    # Normalize children: TOML list/bool → CLI-compatible string
    if "children" in raw:
        v = raw["children"]
        if isinstance(v, list):
            raw["children"] = ",".join(str(x) for x in v) if v else "none"
        elif v is False:
            raw["children"] = "none"
    return raw


def create_parser(description: str) -> argparse.ArgumentParser:
    """Create argparse parser with shared profile flags."""
    d = DEFAULTS
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", type=Path, default=None, help="設定ファイルパス (default: config.toml)")
    parser.add_argument("--spouse-type", type=str, default=None, choices=["couple", "single"], help="世帯: couple=夫婦, single=単身（husband_*の値を本人として使用）(default: couple)")
    for who, label in (("husband", "夫"), ("wife", "妻")):
        parser.add_argument(f"--{who}-age", type=int, default=None, help=f"{label}の年齢 (default: {d[who + '_age']})")
        parser.add_argument(f"--{who}-avg-monthly", type=float, default=None, help=f"{label}の平均標準報酬額・円/月 (default: {d[who + '_avg_monthly']:.0f})")
        parser.add_argument(f"--{who}-months", type=int, default=None, help=f"{label}の厚生年金加入月数 (default: {d[who + '_months']})")
        parser.add_argument(f"--{who}-no-deemed-300", dest=f"{who}_deemed_300", action="store_false", default=None, help=f"{label}のみなし300月を適用しない")
        parser.add_argument(f"--{who}-claim-age", type=int, default=None, help=f"{label}の老齢年金受給開始年齢（60-75, default: {d[who + '_claim_age']}）")
        parser.add_argument(f"--{who}-annual-income", type=float, default=None, help=f"{label}の額面年収・円（0なら平均標準報酬×12）")
    parser.add_argument("--children", type=str, default=None, help=f"子の現在の年齢（カンマ区切り、例: 3,1 / noneで子なし）(default: {d['children']})")
    parser.add_argument("--scenario", type=str, default=None, choices=[k.value for k in ScenarioKind], help=f"シナリオ (default: {d['scenario']})")
    parser.add_argument("--policy", type=str, default=None, choices=[m.value for m in PolicyMode], help="制度: current=現行, revised=2028年改正案 (default: current)")
    parser.add_argument("--disability-level", type=int, default=None, choices=[1, 2, 3], help=f"障害等級 (default: {d['disability_level']})")
    parser.add_argument("--optimize-deferral", action="store_true", default=None, help="65歳以降の繰下げ損益分岐を探索して老齢期を分割")
    parser.add_argument("--living-expense", type=float, default=None, help=f"現在の生活費・円/月 (default: {d['living_expense']:.0f})")
    parser.add_argument("--housing-loan", type=float, default=None, help="住宅ローン返済・円/月（団信で死亡時免除）")
    parser.add_argument("--survivor-expense-ratio", type=float, default=None, help=f"遺族の生活費率％ (default: {d['survivor_expense_ratio']:.0f})")
    parser.add_argument("--disability-expense-ratio", type=float, default=None, help=f"障害時の生活費率％（100以上）(default: {d['disability_expense_ratio']:.0f})")
    parser.add_argument("--work-income-ratio", type=float, default=None, help=f"配偶者の就労継続率％ (default: {d['work_income_ratio']:.0f})")
    parser.add_argument("--savings", type=float, default=None, help="既存の貯蓄・保険・円")
    parser.add_argument("--sick-pay-months", type=int, default=None, help=f"傷病手当金の月数（最大18, default: {d['sick_pay_months']}）")
    parser.add_argument("--funeral-cost", type=float, default=None, help=f"葬儀費用・円 (default: {d['funeral_cost']:.0f})")
    parser.add_argument("--coverage-end-age", type=int, default=None, help=f"保障額の集計終了年齢 (default: {d['coverage_end_age']})")
    return parser


def parse_children(s: str) -> tuple[int, ...]:
    """Parse children string "3,1" → (3, 1). Empty/none → ()."""
    s = str(s).strip().lower()
    if not s or s == "none":
        return ()
    return tuple(int(x) for x in s.split(",") if x.strip())


def resolve(args: argparse.Namespace, config: dict) -> dict:
    """Resolve values with priority: CLI flag > config.toml > hardcoded default."""
    resolved = {}
    for key, default in DEFAULTS.items():
        cli_val = getattr(args, key, None)
        resolved[key] = cli_val if cli_val is not None else config.get(key, default)
    return resolved


def _build_person(r: dict, who: str) -> Person:
    return Person(**{key: r[f"{who}_{key}"] for key in PERSON_KEYS})


def build_household(r: dict) -> Household:
    """Build Household from resolved config dict."""
    husband = _build_person(r, "husband")
    wife = _build_person(r, "wife") if r["spouse_type"] == "couple" else None
    return Household(
        husband=husband,
        wife=wife,
        children_ages=parse_children(r["children"]),
        monthly_living_expense=r["living_expense"],
        housing_loan_monthly=r["housing_loan"],
    )


def build_scenario(r: dict) -> Scenario:
    """Build Scenario from resolved config dict. Raises ValueError on mismatched household."""
    return Scenario(
        kind=ScenarioKind(r["scenario"]),
        household=build_household(r),
        policy=PolicyMode(r["policy"]),
        disability_level=int(r["disability_level"]),
        optimize_deferral=bool(r["optimize_deferral"]),
    )


def build_assumptions(r: dict) -> CoverageAssumptions:
    """Build CoverageAssumptions from resolved config dict (ratios given in %)."""
    return CoverageAssumptions(
        survivor_expense_ratio=r["survivor_expense_ratio"] / 100,
        disability_expense_ratio=r["disability_expense_ratio"] / 100,
        work_income_ratio=r["work_income_ratio"] / 100,
        funeral_cost=r["funeral_cost"],
        end_age=int(r["coverage_end_age"]),
    )


def parse_args(description: str) -> tuple[dict, argparse.Namespace]:
    """Parse CLI args, load config, resolve values.

    Returns (resolved_dict, namespace).
    """
    parser = create_parser(description)
    args = parser.parse_args()
    config = load_config(args.config)
    return resolve(args, config), args
