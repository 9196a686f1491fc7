"""Tests for timeline segmentation."""

import dataclasses

import pytest
from pension_sim_jp.deferral import optimize_deferral
from pension_sim_jp.eligibility import END_AGE, Phase, PolicyMode, Scenario, ScenarioKind, compute_benefit
from pension_sim_jp.formulas import (
    KISO_BASE_ANNUAL,
    MIDLIFE_WIDOW_ADDITION,
    SPOUSAL_ADDITION,
    STANDARD_CLAIM_AGE,
    survivor_basic,
    survivor_employee,
)
from pension_sim_jp.household import Household, Person
from pension_sim_jp.timeline import (
    Segment,
    amount_at,
    build_timeline,
    merge_breakpoints,
    merge_equal_segments,
    phase_schedule,
)

SURVIVOR_EMPLOYEE_450K = survivor_employee(450_000, 300, True)


def _couple(husband=None, wife=None, children=()):
    return Household(
        husband=husband or Person(age=38, avg_monthly=450_000, months=300),
        wife=wife or Person(age=35),
        children_ages=children,
    )


SCENARIOS = [
    Scenario(ScenarioKind.HUSBAND_DEATH, _couple(children=(3,))),
    Scenario(ScenarioKind.HUSBAND_DEATH, _couple(children=(3,)), optimize_deferral=True),
    Scenario(ScenarioKind.HUSBAND_DEATH, _couple(wife=Person(age=25))),
    Scenario(ScenarioKind.HUSBAND_DEATH, _couple(children=(1, 4, 9)), policy=PolicyMode.REVISED),
    Scenario(ScenarioKind.WIFE_DEATH, _couple(husband=Person(age=40), wife=Person(age=38, avg_monthly=300_000, months=200))),
    Scenario(ScenarioKind.WIFE_DEATH, _couple(husband=Person(age=56), wife=Person(age=54, avg_monthly=300_000, months=200))),
    Scenario(ScenarioKind.HUSBAND_DISABILITY, _couple(children=(5,)), disability_level=1),
    Scenario(ScenarioKind.WIFE_DISABILITY, _couple(wife=Person(age=35, avg_monthly=280_000, months=150, claim_age=70))),
    Scenario(ScenarioKind.SINGLE_DISABILITY, Household(husband=Person(age=45, avg_monthly=400_000, months=200)), disability_level=3),
    Scenario(ScenarioKind.SINGLE_DEATH, Household(wife=Person(age=40, avg_monthly=300_000, months=200), children_ages=(10,))),
    Scenario(ScenarioKind.HUSBAND_DEATH, _couple(wife=Person(age=72, claim_age=62))),
    Scenario(ScenarioKind.HUSBAND_DEATH, _couple(wife=Person(age=99))),
    Scenario(
        ScenarioKind.HUSBAND_DISABILITY,
        _couple(husband=Person(age=40, avg_monthly=650_000, months=60), wife=Person(age=30)),
        disability_level=1,
    ),
    Scenario(
        ScenarioKind.HUSBAND_DEATH,
        _couple(husband=Person(age=64, avg_monthly=600_000, months=400), wife=Person(age=62)),
        policy=PolicyMode.REVISED,
    ),
]

SCENARIOS_BOTH_MODES = [
    dataclasses.replace(s, optimize_deferral=flag) for s in SCENARIOS for flag in (False, True)
]


def _expected_amount(scenario, age):
    """Evaluator amount at ``age``, switched to the deferred pension per the plan."""
    if scenario.optimize_deferral:
        plan = optimize_deferral(scenario)
        if plan is not None:
            if plan.is_switch and age >= plan.switch_age:
                return plan.deferred_total
            return compute_benefit(scenario.with_claim_age(STANDARD_CLAIM_AGE), age).total
    return compute_benefit(scenario, age).total


class TestMergeBreakpoints:
    def test_union_sorted_deduplicated(self):
        cuts = merge_breakpoints(35, [[50], [40, 65]], [[65]], clip_age=65)
        assert cuts == [35, 40, 50, 65, 100]

    def test_pre_old_age_clipped_to_claim_age(self):
        cuts = merge_breakpoints(35, [[64], [40, 65]], [[62]], clip_age=62)
        assert cuts == [35, 40, 62, 100]

    def test_ages_at_or_before_current_dropped(self):
        assert merge_breakpoints(50, [[40, 50]], [[65]], clip_age=65) == [50, 65, 100]

    def test_no_streams(self):
        assert merge_breakpoints(30, [], [], clip_age=65) == [30, 100]

    def test_current_at_terminal(self):
        assert merge_breakpoints(100, [[50]], [[65]], clip_age=65) == []


class TestMergeEqualSegments:
    def test_adjacent_equal_segments_joined(self):
        segments = [
            Segment(35, 40, 100.0, "a", {"x": 100.0}),
            Segment(40, 50, 100.0, "a", {"x": 100.0}),
            Segment(50, 60, 50.0, "b", {"x": 50.0}),
        ]
        merged = merge_equal_segments(segments)
        assert [(s.start_age, s.end_age) for s in merged] == [(35, 50), (50, 60)]

    def test_zero_width_dropped(self):
        assert merge_equal_segments([Segment(40, 40, 0.0, "a")]) == []


class TestSegmentTiling:
    @pytest.mark.parametrize("scenario", SCENARIOS, ids=lambda s: f"{s.kind.value}-{s.current_age}")
    def test_tiles_current_age_to_100(self, scenario):
        segments = build_timeline(scenario)
        assert segments[0].start_age == scenario.current_age
        assert segments[-1].end_age == END_AGE
        for prev, nxt in zip(segments, segments[1:]):
            assert prev.end_age == nxt.start_age
        assert all(seg.years > 0 for seg in segments)

    @pytest.mark.parametrize("scenario", SCENARIOS, ids=lambda s: f"{s.kind.value}-{s.current_age}")
    def test_amounts_non_negative_and_match_components(self, scenario):
        for seg in build_timeline(scenario):
            assert seg.annual_amount >= 0
            assert seg.annual_amount == pytest.approx(sum(seg.components.values()))

    @pytest.mark.parametrize(
        "scenario", SCENARIOS_BOTH_MODES,
        ids=lambda s: f"{s.kind.value}-{s.current_age}-{'opt' if s.optimize_deferral else 'plain'}",
    )
    def test_amount_matches_evaluator_at_every_age(self, scenario):
        segments = build_timeline(scenario)
        for age in range(scenario.current_age, END_AGE):
            assert amount_at(segments, age) == pytest.approx(_expected_amount(scenario, age)), age

    def test_empty_at_100(self):
        s = Scenario(ScenarioKind.HUSBAND_DEATH, _couple(wife=Person(age=100)))
        assert build_timeline(s) == []


class TestWidowTimeline:
    """Wife 35, husband 38, one child age 3, husband dies."""

    def setup_method(self):
        self.scenario = Scenario(ScenarioKind.HUSBAND_DEATH, _couple(children=(3,)))
        self.segments = build_timeline(self.scenario)

    def test_segment_boundaries(self):
        assert [(s.start_age, s.end_age) for s in self.segments] == [(35, 50), (50, 65), (65, 100)]

    def test_with_children_segment(self):
        seg = self.segments[0]
        assert seg.annual_amount == pytest.approx(survivor_basic(1) + SURVIVOR_EMPLOYEE_450K)
        assert seg.label == Phase.SURVIVOR_WITH_CHILDREN.label

    def test_widow_addition_segment(self):
        seg = self.segments[1]
        assert seg.components == pytest.approx({
            "employee": SURVIVOR_EMPLOYEE_450K,
            "midlife_widow_addition": MIDLIFE_WIDOW_ADDITION,
        })

    def test_old_age_segment(self):
        seg = self.segments[2]
        assert seg.label == Phase.OLD_AGE_TOPUP.label
        assert seg.annual_amount == pytest.approx(KISO_BASE_ANNUAL + SURVIVOR_EMPLOYEE_450K)

    def test_phase_schedule(self):
        phases = [phase for _, phase in phase_schedule(self.scenario)]
        assert phases[0] is Phase.SURVIVOR_WITH_CHILDREN
        assert phases[-1] is Phase.OLD_AGE_TOPUP

    def test_amount_at(self):
        assert amount_at(self.segments, 49) == pytest.approx(self.segments[0].annual_amount)
        assert amount_at(self.segments, 50) == pytest.approx(self.segments[1].annual_amount)
        assert amount_at(self.segments, 100) == 0
        assert amount_at(self.segments, 20) == 0


class TestTimelineEdges:
    def test_disqualified_widower_zero_until_claim_age(self):
        s = Scenario(
            ScenarioKind.WIFE_DEATH,
            _couple(husband=Person(age=40), wife=Person(age=38, avg_monthly=300_000, months=200)),
        )
        segments = build_timeline(s)
        assert (segments[0].start_age, segments[0].end_age) == (40, 65)
        assert segments[0].annual_amount == 0
        assert segments[0].components == {}

    def test_early_claim_clips_pre_old_age(self):
        """Children turning 18 after the claim age do not cut the timeline."""
        s = Scenario(
            ScenarioKind.HUSBAND_DEATH,
            _couple(wife=Person(age=50, claim_age=60), children=(5,)),
        )
        cuts = [seg.start_age for seg in build_timeline(s)]
        assert 63 not in cuts
        assert 60 in cuts

    def test_already_past_claim_age(self):
        s = Scenario(ScenarioKind.HUSBAND_DEATH, _couple(wife=Person(age=72)))
        segments = build_timeline(s)
        assert len(segments) == 1
        assert segments[0].start_age == 72

    def test_revised_fixed_term_ends_after_claim_age(self):
        """改正案: wife 62 without children, 5年有期 runs to 67 past the claim age of 65."""
        s = Scenario(
            ScenarioKind.HUSBAND_DEATH,
            _couple(husband=Person(age=64, avg_monthly=600_000, months=400), wife=Person(age=62)),
            policy=PolicyMode.REVISED,
        )
        segments = build_timeline(s)
        assert [(seg.start_age, seg.end_age) for seg in segments] == [(62, 65), (65, 67), (67, 100)]
        assert segments[1].annual_amount == pytest.approx(
            KISO_BASE_ANNUAL + survivor_employee(600_000, 400, True)
        )
        assert amount_at(segments, 70) == pytest.approx(KISO_BASE_ANNUAL)
        assert segments[2].label == Phase.OLD_AGE.label

    def test_disability_spousal_addition_cut(self):
        h = Household(
            husband=Person(age=40, avg_monthly=400_000, months=200),
            wife=Person(age=38),
            children_ages=(5,),
        )
        s = Scenario(ScenarioKind.HUSBAND_DISABILITY, h)
        starts = [seg.start_age for seg in build_timeline(s)]
        assert starts == [40, 53, 65, 67]


class TestDeferralTimeline:
    def test_tail_split_at_switch_age(self):
        """Own old-age 0: basic×factor beats basic + survivor employee from 73."""
        s = Scenario(ScenarioKind.HUSBAND_DEATH, _couple(children=(3,)), optimize_deferral=True)
        segments = build_timeline(s)
        assert [(seg.start_age, seg.end_age) for seg in segments] == [(35, 50), (50, 65), (65, 73), (73, 100)]
        assert segments[2].annual_amount == pytest.approx(KISO_BASE_ANNUAL + SURVIVOR_EMPLOYEE_450K)
        assert segments[3].label == Phase.DEFERRED_OLD_AGE.label
        assert segments[3].annual_amount == pytest.approx(KISO_BASE_ANNUAL * 1.672)

    def test_claim_age_preference_overridden(self):
        s = Scenario(
            ScenarioKind.HUSBAND_DEATH,
            _couple(wife=Person(age=35, claim_age=62), children=(3,)),
            optimize_deferral=True,
        )
        starts = [seg.start_age for seg in build_timeline(s)]
        assert 62 not in starts
        assert 65 in starts

    def test_spousal_addition_ends_when_spouse_turns_65(self):
        """Disabled husband 40, wife 30: 配偶者加給 stops at husband 75 even with the optimizer."""
        s = Scenario(
            ScenarioKind.HUSBAND_DISABILITY,
            _couple(husband=Person(age=40, avg_monthly=650_000, months=60), wife=Person(age=30)),
            disability_level=1,
            optimize_deferral=True,
        )
        segments = build_timeline(s)
        assert [(seg.start_age, seg.end_age) for seg in segments] == [(40, 65), (65, 75), (75, 100)]
        assert segments[1].components["spousal_addition"] == pytest.approx(SPOUSAL_ADDITION)
        assert "spousal_addition" not in segments[2].components
        assert amount_at(segments, 80) == pytest.approx(compute_benefit(s, 80).total)

    def test_fixed_term_end_inside_undeferred_stretch(self):
        s = Scenario(
            ScenarioKind.HUSBAND_DEATH,
            _couple(husband=Person(age=64, avg_monthly=600_000, months=400), wife=Person(age=62)),
            policy=PolicyMode.REVISED,
            optimize_deferral=True,
        )
        segments = build_timeline(s)
        assert [(seg.start_age, seg.end_age) for seg in segments] == [(62, 65), (65, 67), (67, 100)]
        assert segments[2].label == Phase.DEFERRED_OLD_AGE.label

    def test_single_death_ignores_optimizer(self):
        h = Household(wife=Person(age=40, avg_monthly=300_000, months=200), children_ages=(10,))
        plain = Scenario(ScenarioKind.SINGLE_DEATH, h)
        optimized = Scenario(ScenarioKind.SINGLE_DEATH, h, optimize_deferral=True)
        assert build_timeline(plain) == build_timeline(optimized)
