"""Deferral break-even search for the post-65 tail (繰下げ受給の損益分岐).

Pattern A: deferring never beats the continuing survivor/disability pension
within the 65-75 window, the tail keeps the undeferred old-age amounts.
Pattern B: from ``switch_age`` the deferred own old-age pension is higher.
``baseline`` is the amount payable at 65; the timeline re-evaluates the
undeferred stretch at each old-age breakpoint.
"""

from dataclasses import dataclass, field

from pension_sim_jp.eligibility import Phase, Scenario, continuing_employee
from pension_sim_jp.formulas import (
    MAX_CLAIM_AGE,
    STANDARD_CLAIM_AGE,
    deferral_factor,
    old_age_basic,
    old_age_employee,
)

PATTERN_KEEP = "A"
PATTERN_SWITCH = "B"


@dataclass(frozen=True)
class DeferralPlan:
    pattern: str
    switch_age: int | None
    baseline: float
    deferred_total: float
    baseline_components: dict[str, float] = field(default_factory=dict)
    deferred_components: dict[str, float] = field(default_factory=dict)
    baseline_phase: Phase = Phase.OLD_AGE

    @property
    def is_switch(self) -> bool:
        return self.pattern == PATTERN_SWITCH


def deferred_total(basic: float, employee: float, claim_age: int) -> float:
    """Own old-age total when claiming at ``claim_age``."""
    factor = deferral_factor(claim_age)
    return basic * factor + employee * factor


def optimize_deferral(scenario: Scenario) -> DeferralPlan | None:
    """Find the first claim age in 65..75 whose deferred pension beats the continuing one.

    Returns None when the scenario has no living claimant (children-only
    survivor benefits).
    """
    claimant = scenario.claimant
    if claimant is None:
        return None

    age = max(STANDARD_CLAIM_AGE, scenario.current_age)
    continuing = continuing_employee(scenario, age)
    continuing_amount = sum(continuing.values())
    basic = old_age_basic()
    own_employee = old_age_employee(claimant.avg_monthly, claimant.months, **claimant.pre_2003)

    if continuing_amount > own_employee:
        baseline_components = {"basic": basic, **continuing}
        baseline_phase = Phase.OLD_AGE_TOPUP
    else:
        baseline_components = {"basic": basic, "employee": own_employee}
        baseline_phase = Phase.OLD_AGE
    baseline_components = {k: v for k, v in baseline_components.items() if v > 0}
    baseline = sum(baseline_components.values())

    for claim_age in range(STANDARD_CLAIM_AGE, MAX_CLAIM_AGE + 1):
        # 比較対象はその年齢で受給中の遺族・障害厚生を含む年金
        # （自身の老齢厚生が上回れば65歳で即切替、有期給付・配偶者加給の終了も反映）
        at = max(claim_age, scenario.current_age)
        continuing_pension = basic + sum(continuing_employee(scenario, at).values())
        total = deferred_total(basic, own_employee, claim_age)
        if total > continuing_pension:
            factor = deferral_factor(claim_age)
            deferred_components = {
                k: v for k, v in {"basic": basic * factor, "employee": own_employee * factor}.items()
                if v > 0
            }
            return DeferralPlan(
                pattern=PATTERN_SWITCH,
                switch_age=claim_age,
                baseline=baseline,
                deferred_total=total,
                baseline_components=baseline_components,
                deferred_components=deferred_components,
                baseline_phase=baseline_phase,
            )

    return DeferralPlan(
        pattern=PATTERN_KEEP,
        switch_age=None,
        baseline=baseline,
        deferred_total=deferred_total(basic, own_employee, MAX_CLAIM_AGE),
        baseline_components=baseline_components,
        baseline_phase=baseline_phase,
    )
