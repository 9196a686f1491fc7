"""CLI entry point: benefit timeline, deferral plan and necessary coverage for one scenario."""

import sys

from pension_sim_jp.config import build_assumptions, build_scenario, parse_args
from pension_sim_jp.coverage import CoverageResult, compute_coverage_gap
from pension_sim_jp.deferral import DeferralPlan, optimize_deferral
from pension_sim_jp.eligibility import Scenario
from pension_sim_jp.timeline import Segment, build_timeline

COMPONENT_LABELS = {
    "basic": "基礎",
    "child_addition": "子の加算",
    "employee": "厚生",
    "spousal_addition": "配偶者加給",
    "midlife_widow_addition": "寡婦加算",
}


def _man(yen: float) -> float:
    """Yen → 万円 (display only)."""
    return yen / 10_000


def _format_components(components: dict[str, float]) -> str:
    if not components:
        return "-"
    return " + ".join(f"{COMPONENT_LABELS.get(k, k)}{_man(v):.1f}" for k, v in components.items())


def _print_header(scenario: Scenario):
    household = scenario.household
    print("=" * 80)
    print(f"公的年金シミュレーション【{scenario.title}】（{scenario.policy.value}）")
    for label, person in (("夫", household.husband), ("妻", household.wife)):
        if person is None:
            continue
        print(
            f"  {label}: {person.age}歳 / 平均標準報酬{_man(person.avg_monthly):.1f}万円"
            f" / 加入{person.months}月{'（みなし300月）' if person.deemed_300 else ''}"
            f" / 受給開始{person.claim_age}歳"
        )
    if household.children_ages:
        ages = ", ".join(f"{a}歳" for a in household.children_ages)
        print(f"  子: {len(household.children_ages)}人（{ages}）")
    else:
        print("  子: なし")
    if not scenario.kind.is_survivor:
        print(f"  障害等級: {scenario.disability_level}級")
    print("=" * 80)
    print()


def _print_timeline(segments: list[Segment]):
    print("【年金タイムライン】")
    print("─" * 70)
    print(f"{'年齢':<10} {'年額(万)':>10} {'月額(万)':>10}  内訳")
    print("─" * 70)
    for seg in segments:
        span = f"{seg.start_age}-{seg.end_age - 1}歳"
        print(
            f"{span:<10} {_man(seg.annual_amount):>10.1f} {_man(seg.annual_amount) / 12:>10.2f}"
            f"  {seg.label}"
        )
        print(f"{'':<10} {'':>10} {'':>10}    {_format_components(seg.components)}")
    print("─" * 70)
    if not segments:
        print("  対象期間なし（100歳以上）")


def _print_deferral(plan: DeferralPlan | None):
    print("\n【繰下げ受給の損益分岐】")
    if plan is None:
        print("  対象外（老齢年金の受給者なし）")
        return
    print(f"  65歳時点の年金: {_man(plan.baseline):.1f}万円/年")
    if plan.is_switch:
        print(
            f"  パターン{plan.pattern}: {plan.switch_age}歳から繰下げ受給"
            f" → {_man(plan.deferred_total):.1f}万円/年"
        )
    else:
        print(
            f"  パターン{plan.pattern}: 75歳まで繰下げても上回らない"
            f"（75歳繰下げ {_man(plan.deferred_total):.1f}万円/年）"
        )


def _print_coverage(result: CoverageResult, end_age: int):
    print(f"\n【必要保障額（{end_age}歳まで）】")
    print("─" * 70)
    print(f"  不足額合計:       {_man(result.total_shortfall):>10.0f}万円")
    if result.sick_pay_deduction > 0:
        print(f"  傷病手当金(▲):    {_man(result.sick_pay_deduction):>10.0f}万円")
    if result.savings_applied > 0:
        print(f"  貯蓄・保険(▲):    {_man(result.savings_applied):>10.0f}万円")
    if result.funeral_cost > 0:
        print(f"  葬儀費用:         {_man(result.funeral_cost):>10.0f}万円")
    print("─" * 70)
    print(f"  必要保障額:       {_man(result.net_shortfall):>10.0f}万円")
    print(f"  最大月間不足:     {_man(result.monthly_shortfall_max):>10.1f}万円/月")

    print(f"\n{'年齢':<5} {'年金(万)':>9} {'手当(万)':>9} {'就労(万)':>9} {'目標(万)':>9} {'不足(万)':>9}")
    for i, row in enumerate(result.rows):
        if not row.active:
            break
        if i % 5 == 0:
            print(
                f"{row.age:<5} {_man(row.benefit):>9.1f} {_man(row.allowances):>9.1f}"
                f" {_man(row.work_income):>9.1f} {_man(row.target):>9.1f} {_man(row.shortfall):>9.1f}"
            )


def main():
    """Execute the pension simulation for one scenario."""
    r, _ = parse_args("公的年金（遺族・障害・老齢）シミュレーション")
    try:
        scenario = build_scenario(r)
    except ValueError as e:
        print(f"エラー: {e}", file=sys.stderr)
        raise SystemExit(1)

    _print_header(scenario)
    _print_timeline(build_timeline(scenario))
    if scenario.optimize_deferral:
        _print_deferral(optimize_deferral(scenario))

    assumptions = build_assumptions(r)
    result = compute_coverage_gap(
        scenario,
        assumptions,
        savings=r["savings"],
        sick_pay_cap_months=int(r["sick_pay_months"]),
    )
    _print_coverage(result, assumptions.end_age)


if __name__ == "__main__":
    main()
