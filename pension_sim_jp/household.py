"""Household profile snapshot: persons, children and child eligibility."""

from dataclasses import dataclass, field

from pension_sim_jp.formulas import STANDARD_CLAIM_AGE, clamp_claim_age

# 子の要件: 18歳到達年度末まで（簡易的に18歳未満で判定、全計算で統一）
CHILD_ELIGIBLE_UNTIL = 18


def eligible_child_count(children_ages: tuple[int, ...] | list[int]) -> int:
    """Count children still eligible for child additions and allowances."""
    return sum(1 for age in children_ages if age < CHILD_ELIGIBLE_UNTIL)


@dataclass(frozen=True)
class Person:
    """One insured person (被保険者)."""

    age: int
    avg_monthly: float = 0.0        # 平均標準報酬額（円/月、2003年4月以降）
    months: int = 0                 # 厚生年金加入月数（2003年4月以降）
    deemed_300: bool = True         # みなし300月
    claim_age: int = STANDARD_CLAIM_AGE  # 老齢年金の受給開始年齢（60-75）
    annual_income: float = 0.0      # 額面年収（円）、0なら平均標準報酬×12
    months_before_2003: int = 0
    avg_monthly_before_2003: float = 0.0

    def __post_init__(self):
        # Frozen: normalize through object.__setattr__
        object.__setattr__(self, "age", max(0, int(self.age)))
        object.__setattr__(self, "avg_monthly", max(0.0, float(self.avg_monthly)))
        object.__setattr__(self, "months", max(0, int(self.months)))
        object.__setattr__(self, "claim_age", clamp_claim_age(self.claim_age))
        object.__setattr__(self, "annual_income", max(0.0, float(self.annual_income)))
        object.__setattr__(self, "months_before_2003", max(0, int(self.months_before_2003)))
        object.__setattr__(
            self, "avg_monthly_before_2003", max(0.0, float(self.avg_monthly_before_2003)),
        )

    @property
    def gross_income(self) -> float:
        """Gross annual income, estimated from remuneration when not entered."""
        if self.annual_income > 0:
            return self.annual_income
        return self.avg_monthly * 12

    @property
    def pre_2003(self) -> dict:
        """Keyword arguments carrying the pre-April-2003 record into the formulas."""
        return {
            "months_before_2003": self.months_before_2003,
            "avg_monthly_before_2003": self.avg_monthly_before_2003,
        }


@dataclass(frozen=True)
class Household:
    """One or two persons plus children's current ages."""

    husband: Person | None = None
    wife: Person | None = None
    children_ages: tuple[int, ...] = field(default_factory=tuple)
    monthly_living_expense: float = 0.0  # 現在の生活費（円/月、住宅ローン含む）
    housing_loan_monthly: float = 0.0    # 住宅ローン返済（円/月、団信で死亡時免除）

    def __post_init__(self):
        object.__setattr__(
            self, "children_ages", tuple(max(0, int(a)) for a in self.children_ages),
        )
        object.__setattr__(
            self, "monthly_living_expense", max(0.0, float(self.monthly_living_expense)),
        )
        object.__setattr__(
            self, "housing_loan_monthly", max(0.0, float(self.housing_loan_monthly)),
        )

    @property
    def is_couple(self) -> bool:
        return self.husband is not None and self.wife is not None

    @property
    def sole_person(self) -> Person | None:
        """The only adult of a single-person household, else None."""
        if self.is_couple:
            return None
        return self.husband if self.husband is not None else self.wife

    def children_at(self, years: int) -> tuple[int, ...]:
        """Children's ages ``years`` from now."""
        return tuple(a + years for a in self.children_ages)

    def eligible_children_at(self, years: int) -> int:
        return eligible_child_count(self.children_at(years))

    def years_until_children_age_out(self) -> int:
        """Years until the youngest eligible child turns 18 (0 with none eligible)."""
        remaining = [CHILD_ELIGIBLE_UNTIL - a for a in self.children_ages if a < CHILD_ELIGIBLE_UNTIL]
        return max(remaining, default=0)
