"""Necessary coverage (必要保障額): benefit timeline vs. post-event spending target.

For each simulated age the household's income (public pension, child
allowances, continuing work income) is compared with a target spending
curve. The undeducted shortfall over the coverage window is then reduced by
sick pay (disability only) and savings, each distributed across deficit
years in proportion to that year's shortfall. A funeral lump sum is added to
the survivor total directly.
"""

from dataclasses import dataclass, field

from pension_sim_jp.eligibility import END_AGE, Scenario, ScenarioKind
from pension_sim_jp.household import CHILD_ELIGIBLE_UNTIL, eligible_child_count
from pension_sim_jp.timeline import Segment, amount_at, build_timeline

RETIREMENT_AGE = 65  # 就労収入の終了年齢

# 児童手当（月額・円）: (年齢上限(未満), 第1・2子, 第3子以降)
CHILD_ALLOWANCE_SCHEDULE: tuple[tuple[int, float, float], ...] = (
    (3, 15_000, 30_000),
    (CHILD_ELIGIBLE_UNTIL, 10_000, 30_000),
)

# 児童扶養手当（月額・円）: (年収上限(未満), 第1子, 第2子以降の加算)
CHILD_SUPPORT_SCHEDULE: tuple[tuple[float, float, float], ...] = (
    (1_600_000, 43_070, 10_170),  # 全部支給
    (3_650_000, 28_850, 8_275),   # 一部支給（中間値）
)

# 教育費（年額・円）: (子の年齢上限(未満), 年額)
EDUCATION_COST_SCHEDULE: tuple[tuple[int, float], ...] = (
    (6, 15_000 * 12),
    (12, 20_000 * 12),
    (15, 30_000 * 12),
    (18, 40_000 * 12),
    (23, 80_000 * 12),
)

SICK_PAY_RATIO = 0.67        # 傷病手当金 ≈ 手取りの2/3
MAX_SICK_PAY_MONTHS = 18     # 最長1年6カ月


@dataclass(frozen=True)
class CoverageAssumptions:
    """Post-event spending and income ratios."""

    survivor_expense_ratio: float = 0.70    # 遺族の生活費率（一般的な圧縮率）
    disability_expense_ratio: float = 1.10  # 障害時の生活費率（医療・介護で増加、100%以上）
    work_income_ratio: float = 0.90         # 配偶者の就労継続率
    reserve_ratio: float = 0.10             # 障害時の予備費（生活費の10%）
    funeral_cost: float = 1_000_000         # 葬儀費用（遺族シナリオのみ）
    end_age: int = RETIREMENT_AGE           # 保障額の集計終了年齢（この年齢は含まない）

    def __post_init__(self):
        object.__setattr__(self, "survivor_expense_ratio", max(0.0, self.survivor_expense_ratio))
        object.__setattr__(self, "disability_expense_ratio", max(1.0, self.disability_expense_ratio))
        object.__setattr__(self, "work_income_ratio", max(0.0, self.work_income_ratio))
        object.__setattr__(self, "reserve_ratio", max(0.0, self.reserve_ratio))
        object.__setattr__(self, "funeral_cost", max(0.0, self.funeral_cost))


@dataclass
class CoverageRow:
    age: int
    benefit: float
    allowances: float
    work_income: float
    target: float
    base_shortfall: float
    sick_pay: float = 0.0
    savings: float = 0.0
    shortfall: float = 0.0
    surplus: float = 0.0
    active: bool = True

    @property
    def income(self) -> float:
        return self.benefit + self.allowances + self.work_income


@dataclass
class CoverageResult:
    rows: list[CoverageRow] = field(default_factory=list)
    total_shortfall: float = 0.0
    sick_pay_deduction: float = 0.0
    savings_applied: float = 0.0
    funeral_cost: float = 0.0
    net_shortfall: float = 0.0
    segments: list[Segment] = field(default_factory=list)

    @property
    def monthly_shortfall_max(self) -> float:
        active = [r.shortfall / 12 for r in self.rows if r.active]
        return max(active, default=0.0)


def child_allowance_monthly(children_ages: tuple[int, ...]) -> float:
    """Child allowance (児童手当), counting birth order from the eldest child."""
    total = 0.0
    for order, age in enumerate(sorted(children_ages, reverse=True), start=1):
        for upper, first_two, third_plus in CHILD_ALLOWANCE_SCHEDULE:
            if age < upper:
                total += first_two if order <= 2 else third_plus
                break
    return total


def child_support_allowance_monthly(children_ages: tuple[int, ...], annual_income: float) -> float:
    """Child support allowance (児童扶養手当) for a single parent, income-tested."""
    count = eligible_child_count(children_ages)
    if count == 0:
        return 0.0
    for upper, first, additional in CHILD_SUPPORT_SCHEDULE:
        if annual_income < upper:
            return first + additional * (count - 1)
    return 0.0


def education_cost_annual(children_ages: tuple[int, ...]) -> float:
    """Simplified education cost by child age bracket."""
    total = 0.0
    for age in children_ages:
        for upper, annual in EDUCATION_COST_SCHEDULE:
            if age < upper:
                total += annual
                break
    return total


def sick_pay_total(monthly_living_expense: float, cap_months: int) -> float:
    """Sick pay (傷病手当金) lump, capped at 18 months."""
    months = min(max(0, cap_months), MAX_SICK_PAY_MONTHS)
    return max(0.0, monthly_living_expense) * SICK_PAY_RATIO * months


def _work_income(scenario: Scenario, years: int, ratio: float) -> float:
    if scenario.kind.is_survivor:
        earner = scenario.claimant
    else:
        earner = scenario.spouse
    if earner is None or earner.age + years >= RETIREMENT_AGE:
        return 0.0
    return earner.gross_income * ratio


def _target(scenario: Scenario, assumptions: CoverageAssumptions, children: tuple[int, ...]) -> float:
    household = scenario.household
    expense = household.monthly_living_expense * 12
    education = education_cost_annual(children)
    if scenario.kind.is_survivor:
        # 住宅ローンは団信で免除
        base = max(0.0, expense - household.housing_loan_monthly * 12)
        return base * assumptions.survivor_expense_ratio + education
    return (
        expense * assumptions.disability_expense_ratio
        + education
        + expense * assumptions.reserve_ratio
    )


def _allowances(scenario: Scenario, children: tuple[int, ...]) -> float:
    monthly = child_allowance_monthly(children)
    if scenario.kind in (ScenarioKind.HUSBAND_DEATH, ScenarioKind.WIFE_DEATH):
        monthly += child_support_allowance_monthly(children, scenario.claimant.gross_income)
    return monthly * 12


def _distribute(rows: list[CoverageRow], amount: float, total: float, attr: str) -> float:
    """Spread ``amount`` over active rows by shortfall share; returns the amount placed."""
    if amount <= 0 or total <= 0:
        return 0.0
    placed = 0.0
    for row in rows:
        if not row.active or row.base_shortfall <= 0:
            continue
        remaining = row.base_shortfall - row.sick_pay - row.savings
        share = min(amount * row.base_shortfall / total, max(0.0, remaining))
        setattr(row, attr, getattr(row, attr) + share)
        placed += share
    return placed


def compute_coverage_gap(
    scenario: Scenario,
    assumptions: CoverageAssumptions | None = None,
    savings: float = 0.0,
    sick_pay_cap_months: int = MAX_SICK_PAY_MONTHS,
) -> CoverageResult:
    """Net insurance shortfall for ``scenario`` with per-year rows to age 100."""
    if assumptions is None:
        assumptions = CoverageAssumptions()
    segments = build_timeline(scenario)
    current = scenario.current_age

    rows: list[CoverageRow] = []
    for age in range(current, END_AGE):
        years = age - current
        children = scenario.household.children_at(years)
        benefit = amount_at(segments, age)
        allowances = _allowances(scenario, children)
        work = _work_income(scenario, years, assumptions.work_income_ratio)
        target = _target(scenario, assumptions, children)
        income = benefit + allowances + work
        rows.append(CoverageRow(
            age=age,
            benefit=benefit,
            allowances=allowances,
            work_income=work,
            target=target,
            base_shortfall=max(0.0, target - income),
            surplus=max(0.0, income - target),
            active=age < assumptions.end_age,
        ))

    total = sum(r.base_shortfall for r in rows if r.active)

    sick_pay = 0.0
    if not scenario.kind.is_survivor:
        available = min(sick_pay_total(scenario.household.monthly_living_expense, sick_pay_cap_months), total)
        sick_pay = _distribute(rows, available, total, "sick_pay")
    savings_available = min(max(0.0, savings), total - sick_pay)
    savings_applied = _distribute(rows, savings_available, total, "savings")

    for row in rows:
        row.shortfall = max(0.0, row.base_shortfall - row.sick_pay - row.savings)

    funeral = assumptions.funeral_cost if scenario.kind.is_survivor else 0.0
    net = max(0.0, total - sick_pay - savings_applied) + funeral
    return CoverageResult(
        rows=rows,
        total_shortfall=total,
        sick_pay_deduction=sick_pay,
        savings_applied=savings_applied,
        funeral_cost=funeral,
        net_shortfall=net,
        segments=segments,
    )
