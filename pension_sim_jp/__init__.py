"""Japanese Public Pension (Survivor / Disability / Old-age) Simulation Package."""

from pension_sim_jp.formulas import (
    KISO_BASE_ANNUAL,
    CHILD_ADDITION_1_2,
    CHILD_ADDITION_3_PLUS,
    MIDLIFE_WIDOW_ADDITION,
    SPOUSAL_ADDITION,
    DISABILITY_LEVEL3_MINIMUM,
    survivor_basic,
    survivor_employee,
    disability_basic,
    disability_employee,
    old_age_basic,
    old_age_employee,
    deferral_factor,
    deferral_adjust,
    midlife_widow_addition,
)
from pension_sim_jp.household import Person, Household, CHILD_ELIGIBLE_UNTIL
from pension_sim_jp.eligibility import (
    Scenario,
    ScenarioKind,
    PolicyMode,
    Phase,
    BenefitResult,
    END_AGE,
    compute_benefit,
    validate_scenario,
)
from pension_sim_jp.timeline import Segment, build_timeline, merge_breakpoints
from pension_sim_jp.deferral import DeferralPlan, optimize_deferral
from pension_sim_jp.coverage import CoverageAssumptions, CoverageResult, compute_coverage_gap

__all__ = [
    "KISO_BASE_ANNUAL",
    "CHILD_ADDITION_1_2",
    "CHILD_ADDITION_3_PLUS",
    "MIDLIFE_WIDOW_ADDITION",
    "SPOUSAL_ADDITION",
    "DISABILITY_LEVEL3_MINIMUM",
    "survivor_basic",
    "survivor_employee",
    "disability_basic",
    "disability_employee",
    "old_age_basic",
    "old_age_employee",
    "deferral_factor",
    "deferral_adjust",
    "midlife_widow_addition",
    "Person",
    "Household",
    "CHILD_ELIGIBLE_UNTIL",
    "Scenario",
    "ScenarioKind",
    "PolicyMode",
    "Phase",
    "BenefitResult",
    "END_AGE",
    "compute_benefit",
    "validate_scenario",
    "Segment",
    "build_timeline",
    "merge_breakpoints",
    "DeferralPlan",
    "optimize_deferral",
    "CoverageAssumptions",
    "CoverageResult",
    "compute_coverage_gap",
]
