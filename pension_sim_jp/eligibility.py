"""Eligibility rules: which benefit combination applies to a scenario at a given age.

A ``Scenario`` tags the household event (who died or became disabled) and the
policy mode. Every rule is evaluated on the claimant's age axis: the survivor
for deaths, the disabled person for disabilities, and the deceased (as if
alive) for a single-person death where only the children receive benefits.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum

from pension_sim_jp.formulas import (
    KISO_BASE_ANNUAL,
    SPOUSAL_ADDITION,
    child_additions,
    clamp_disability_level,
    deferral_adjust,
    disability_basic_base,
    disability_employee,
    disability_employee_proportional,
    midlife_widow_addition,
    old_age_basic,
    old_age_employee,
    survivor_employee,
)
from pension_sim_jp.household import CHILD_ELIGIBLE_UNTIL, Household, Person

END_AGE = 100  # タイムライン終端（この年齢は含まない）

# 遺族厚生年金の年齢要件（現行制度）
YOUNG_WIDOW_AGE = 30       # 子のない30歳未満の妻は5年有期
FIXED_TERM_YEARS = 5       # 有期給付の年数（改正案は全員）
WIDOWER_MIN_AGE = 55       # 妻死亡時55歳未満の夫は受給権なし
WIDOWER_PAYMENT_AGE = 60   # 55-59歳は支給停止、60歳から支給
MIDLIFE_WIDOW_START = 40   # 中高齢寡婦加算 40歳〜
MIDLIFE_WIDOW_END = 65     # 〜65歳未満
SPOUSAL_ADDITION_END = 65  # 配偶者加給は配偶者65歳未満まで


class ScenarioKind(Enum):
    HUSBAND_DEATH = "husband_death"
    WIFE_DEATH = "wife_death"
    HUSBAND_DISABILITY = "husband_disability"
    WIFE_DISABILITY = "wife_disability"
    SINGLE_DISABILITY = "single_disability"
    SINGLE_DEATH = "single_death"

    @property
    def is_survivor(self) -> bool:
        return self in _SURVIVOR_KINDS

    @property
    def is_couple(self) -> bool:
        return self not in (ScenarioKind.SINGLE_DISABILITY, ScenarioKind.SINGLE_DEATH)


_SURVIVOR_KINDS = frozenset({
    ScenarioKind.HUSBAND_DEATH, ScenarioKind.WIFE_DEATH, ScenarioKind.SINGLE_DEATH,
})

SCENARIO_TITLES = {
    ScenarioKind.HUSBAND_DEATH: "夫死亡時",
    ScenarioKind.WIFE_DEATH: "妻死亡時",
    ScenarioKind.HUSBAND_DISABILITY: "夫障害時",
    ScenarioKind.WIFE_DISABILITY: "妻障害時",
    ScenarioKind.SINGLE_DISABILITY: "本人障害時",
    ScenarioKind.SINGLE_DEATH: "本人死亡時",
}

# (claimant field, insured field) on Household; None = the sole person / nobody
_ROLES: dict[ScenarioKind, tuple[str | None, str | None]] = {
    ScenarioKind.HUSBAND_DEATH: ("wife", "husband"),
    ScenarioKind.WIFE_DEATH: ("husband", "wife"),
    ScenarioKind.HUSBAND_DISABILITY: ("husband", "husband"),
    ScenarioKind.WIFE_DISABILITY: ("wife", "wife"),
}


class PolicyMode(Enum):
    CURRENT = "current"   # 現行制度
    REVISED = "revised"   # 2028年改正案（試算）: 子のない配偶者は5年有期、寡婦加算なし


class Phase(Enum):
    """Formula selector: the benefit combination in force over a stretch of ages."""

    SURVIVOR_WITH_CHILDREN = "遺族基礎年金 + 遺族厚生年金"
    SURVIVOR_EMPLOYEE = "遺族厚生年金"
    SURVIVOR_WIDOW = "遺族厚生年金 + 中高齢寡婦加算"
    SURVIVOR_FIXED_TERM = "遺族厚生年金（5年有期）"
    SURVIVOR_SUSPENDED = "遺族厚生年金（60歳まで支給停止）"
    DISABILITY = "障害基礎年金 + 障害厚生年金"
    OLD_AGE = "老齢基礎年金 + 老齢厚生年金"
    OLD_AGE_TOPUP = "老齢基礎年金 + 遺族・障害厚生年金（差額）"
    DEFERRED_OLD_AGE = "老齢年金（繰下げ）"
    NONE = "支給なし"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class BenefitResult:
    """Annual benefit at one age, decomposed into named components."""

    total: float
    components: dict[str, float] = field(default_factory=dict)
    phase: Phase = Phase.NONE

    @property
    def label(self) -> str:
        return self.phase.label


@dataclass(frozen=True)
class BreakpointStreams:
    """Candidate breakpoint ages, grouped by whether they belong before the own claim age."""

    pre_old_age: dict[str, list[int]]
    old_age: dict[str, list[int]]


@dataclass(frozen=True)
class Scenario:
    kind: ScenarioKind
    household: Household
    policy: PolicyMode = PolicyMode.CURRENT
    disability_level: int = 2
    optimize_deferral: bool = False

    def __post_init__(self):
        object.__setattr__(self, "disability_level", clamp_disability_level(self.disability_level))
        validate_scenario(self.kind, self.household)

    def _field(self, index: int) -> str | None:
        roles = _ROLES.get(self.kind)
        if roles is not None:
            return roles[index]
        sole = "husband" if self.household.husband is not None else "wife"
        if self.kind is ScenarioKind.SINGLE_DEATH:
            return (None, sole)[index]
        return sole

    @property
    def claimant(self) -> Person | None:
        """The living person receiving the benefit (None when only children receive it)."""
        name = self._field(0)
        return getattr(self.household, name) if name else None

    @property
    def insured(self) -> Person:
        """The person whose record funds the survivor/disability benefit."""
        return getattr(self.household, self._field(1))

    @property
    def spouse(self) -> Person | None:
        """The claimant's living spouse (disability scenarios of a couple)."""
        if self.kind is ScenarioKind.HUSBAND_DISABILITY:
            return self.household.wife
        if self.kind is ScenarioKind.WIFE_DISABILITY:
            return self.household.husband
        return None

    @property
    def current_age(self) -> int:
        person = self.claimant if self.claimant is not None else self.insured
        return person.age

    @property
    def claim_age(self) -> int:
        """Own old-age claim age; END_AGE when nobody in the scenario claims one."""
        return self.claimant.claim_age if self.claimant is not None else END_AGE

    @property
    def age_after_children(self) -> int:
        """Claimant age when the last eligible child turns 18."""
        return self.current_age + self.household.years_until_children_age_out()

    @property
    def title(self) -> str:
        return SCENARIO_TITLES[self.kind]

    def with_claim_age(self, claim_age: int) -> "Scenario":
        """Copy of this scenario with the claimant claiming old-age pension at ``claim_age``."""
        name = self._field(0)
        if name is None:
            return self
        person = dataclasses.replace(getattr(self.household, name), claim_age=claim_age)
        household = dataclasses.replace(self.household, **{name: person})
        return dataclasses.replace(self, household=household)


def validate_scenario(kind: ScenarioKind, household: Household) -> None:
    """Check the household has the persons the scenario refers to. Raises ValueError."""
    if kind.is_couple and not household.is_couple:
        raise ValueError(f"{SCENARIO_TITLES[kind]}のシナリオには夫婦両方の情報が必要です")
    if not kind.is_couple and household.sole_person is None:
        raise ValueError(f"{SCENARIO_TITLES[kind]}のシナリオは単身世帯（1人）のみ対象です")


def _drop_zero(components: dict[str, float]) -> dict[str, float]:
    return {name: amount for name, amount in components.items() if amount > 0}


def _survivor_employee_amount(scenario: Scenario) -> float:
    p = scenario.insured
    return survivor_employee(p.avg_monthly, p.months, p.deemed_300, **p.pre_2003)


def _is_fixed_term(scenario: Scenario) -> bool:
    """Survivor employee pension after children is limited to 5 years."""
    if scenario.kind is ScenarioKind.SINGLE_DEATH:
        return False
    if scenario.policy is PolicyMode.REVISED:
        return True
    return (
        scenario.kind is ScenarioKind.HUSBAND_DEATH
        and scenario.age_after_children < YOUNG_WIDOW_AGE
    )


def _after_children_phase(scenario: Scenario, age: int) -> Phase:
    if scenario.kind is ScenarioKind.SINGLE_DEATH:
        return Phase.NONE
    if _is_fixed_term(scenario):
        if age < scenario.age_after_children + FIXED_TERM_YEARS:
            return Phase.SURVIVOR_FIXED_TERM
        return Phase.NONE
    if scenario.kind is ScenarioKind.WIFE_DEATH:
        # 受給権は死亡時の年齢で判定
        if scenario.current_age < WIDOWER_MIN_AGE:
            return Phase.NONE
        if age < WIDOWER_PAYMENT_AGE:
            return Phase.SURVIVOR_SUSPENDED
        return Phase.SURVIVOR_EMPLOYEE
    if (
        scenario.age_after_children >= MIDLIFE_WIDOW_START
        and MIDLIFE_WIDOW_START <= age < MIDLIFE_WIDOW_END
    ):
        return Phase.SURVIVOR_WIDOW
    return Phase.SURVIVOR_EMPLOYEE


def _pre_old_age_phase(scenario: Scenario, age: int) -> Phase:
    if not scenario.kind.is_survivor:
        return Phase.DISABILITY
    if scenario.household.eligible_children_at(age - scenario.current_age) > 0:
        return Phase.SURVIVOR_WITH_CHILDREN
    return _after_children_phase(scenario, age)


_PAYABLE_SURVIVOR_PHASES = frozenset({
    Phase.SURVIVOR_WITH_CHILDREN,
    Phase.SURVIVOR_EMPLOYEE,
    Phase.SURVIVOR_WIDOW,
    Phase.SURVIVOR_FIXED_TERM,
})


def continuing_employee(scenario: Scenario, age: int) -> dict[str, float]:
    """Survivor or disability employee components still payable at ``age``.

    This is the amount the own old-age employee pension is compared against
    once the claimant reaches the claim age (高い方を選択).
    """
    if scenario.kind.is_survivor:
        if _pre_old_age_phase(scenario, age) not in _PAYABLE_SURVIVOR_PHASES:
            return {}
        return _drop_zero({"employee": _survivor_employee_amount(scenario)})

    p = scenario.insured
    level = scenario.disability_level
    spousal = 0.0
    spouse = scenario.spouse
    if spouse is not None and spouse.age + (age - scenario.current_age) < SPOUSAL_ADDITION_END:
        spousal = SPOUSAL_ADDITION
    proportional = disability_employee_proportional(
        level, p.avg_monthly, p.months, p.deemed_300, **p.pre_2003,
    )
    # 3級は配偶者加給なし（disability_employee 側で判定）
    total = disability_employee(level, spousal, p.avg_monthly, p.months, p.deemed_300, **p.pre_2003)
    return _drop_zero({
        "employee": proportional,
        "spousal_addition": total - proportional,
    })


def own_old_age(person: Person, claim_age: int | None = None) -> tuple[float, float]:
    """(basic, employee) own old-age pension, adjusted for the claim age."""
    if claim_age is None:
        claim_age = person.claim_age
    basic = deferral_adjust(old_age_basic(), claim_age)
    employee = deferral_adjust(
        old_age_employee(person.avg_monthly, person.months, **person.pre_2003), claim_age,
    )
    return basic, employee


def select_phase(scenario: Scenario, age: int) -> Phase:
    """Benefit combination in force at the claimant's ``age``."""
    age = max(age, scenario.current_age)
    claimant = scenario.claimant
    if claimant is not None and age >= claimant.claim_age:
        _, own_employee = own_old_age(claimant)
        if sum(continuing_employee(scenario, age).values()) > own_employee:
            return Phase.OLD_AGE_TOPUP
        return Phase.OLD_AGE
    return _pre_old_age_phase(scenario, age)


def _components(scenario: Scenario, phase: Phase, age: int) -> dict[str, float]:
    if phase is Phase.SURVIVOR_WITH_CHILDREN:
        count = scenario.household.eligible_children_at(age - scenario.current_age)
        return {
            "basic": KISO_BASE_ANNUAL,
            "child_addition": child_additions(count),
            "employee": _survivor_employee_amount(scenario),
        }
    if phase in (Phase.SURVIVOR_EMPLOYEE, Phase.SURVIVOR_FIXED_TERM):
        return {"employee": _survivor_employee_amount(scenario)}
    if phase is Phase.SURVIVOR_WIDOW:
        return {
            "employee": _survivor_employee_amount(scenario),
            "midlife_widow_addition": midlife_widow_addition(),
        }
    if phase is Phase.DISABILITY:
        level = scenario.disability_level
        count = scenario.household.eligible_children_at(age - scenario.current_age)
        components = {
            "basic": disability_basic_base(level),
            "child_addition": child_additions(count) if level < 3 else 0.0,
        }
        components.update(continuing_employee(scenario, age))
        return components
    if phase in (Phase.OLD_AGE, Phase.OLD_AGE_TOPUP):
        basic, own_employee = own_old_age(scenario.claimant)
        if phase is Phase.OLD_AGE_TOPUP:
            return {"basic": basic, **continuing_employee(scenario, age)}
        return {"basic": basic, "employee": own_employee}
    return {}


def compute_benefit(scenario: Scenario, evaluation_age: int) -> BenefitResult:
    """Annual benefit for ``scenario`` at the claimant's ``evaluation_age``.

    Ages before the event are clamped to the current age. An unsatisfiable
    entitlement (e.g. a disqualified widower) is a zero result with no
    components, never an error.
    """
    age = max(evaluation_age, scenario.current_age)
    phase = select_phase(scenario, age)
    components = _drop_zero(_components(scenario, phase, age))
    return BenefitResult(total=sum(components.values()), components=components, phase=phase)


def breakpoint_streams(scenario: Scenario) -> BreakpointStreams:
    """Ages at which a formula input changes discretely, grouped into named streams."""
    current = scenario.current_age
    household = scenario.household
    pre: dict[str, list[int]] = {
        "children": [
            current + (CHILD_ELIGIBLE_UNTIL - a)
            for a in household.children_ages if a < CHILD_ELIGIBLE_UNTIL
        ],
    }
    post: dict[str, list[int]] = {}
    if scenario.kind.is_survivor and _is_fixed_term(scenario):
        term_end = scenario.age_after_children + FIXED_TERM_YEARS
        # 有期給付が受給開始後に終わる場合、老齢期の差額分もそこで切れる
        if term_end > scenario.claim_age:
            post["fixed_term"] = [term_end]
        else:
            pre["fixed_term"] = [term_end]
    if scenario.kind is ScenarioKind.HUSBAND_DEATH:
        pre["thresholds"] = [MIDLIFE_WIDOW_START, MIDLIFE_WIDOW_END]
    elif scenario.kind is ScenarioKind.WIFE_DEATH:
        pre["thresholds"] = [WIDOWER_PAYMENT_AGE]

    if scenario.claimant is not None:
        post["claim_age"] = [scenario.claimant.claim_age]
    spouse = scenario.spouse
    if spouse is not None and spouse.age < SPOUSAL_ADDITION_END:
        post["spouse_65"] = [current + (SPOUSAL_ADDITION_END - spouse.age)]
    return BreakpointStreams(pre_old_age=pre, old_age=post)
