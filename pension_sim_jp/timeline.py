"""Benefit timeline: contiguous constant-amount segments from the current age to 100."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from pension_sim_jp.deferral import DeferralPlan, optimize_deferral
from pension_sim_jp.eligibility import (
    END_AGE,
    Phase,
    Scenario,
    breakpoint_streams,
    compute_benefit,
    select_phase,
)
from pension_sim_jp.formulas import STANDARD_CLAIM_AGE


@dataclass(frozen=True)
class Segment:
    start_age: int
    end_age: int  # exclusive
    annual_amount: float
    label: str
    components: dict[str, float] = field(default_factory=dict)

    @property
    def years(self) -> int:
        return self.end_age - self.start_age

    def contains(self, age: int) -> bool:
        return self.start_age <= age < self.end_age


def merge_breakpoints(
    current_age: int,
    pre_old_age: Iterable[Iterable[int]],
    old_age: Iterable[Iterable[int]],
    clip_age: int,
    terminal: int = END_AGE,
) -> list[int]:
    """Union the candidate streams into sorted cut ages ``[current_age, ..., terminal]``.

    Pre-old-age ages are clipped to ``clip_age`` (the own claim age); ages at or
    before the current age, or at/after the terminal age, are dropped. Returns
    an empty list when the current age has already reached the terminal age.
    """
    if current_age >= terminal:
        return []
    candidates = {min(age, clip_age) for stream in pre_old_age for age in stream}
    candidates.update(age for stream in old_age for age in stream)
    inner = sorted(age for age in candidates if current_age < age < terminal)
    return [current_age, *inner, terminal]


def merge_equal_segments(segments: list[Segment]) -> list[Segment]:
    """Join adjacent segments carrying the same label and components."""
    merged: list[Segment] = []
    for seg in segments:
        if seg.years <= 0:
            continue
        prev = merged[-1] if merged else None
        if (
            prev is not None
            and prev.end_age == seg.start_age
            and prev.label == seg.label
            and prev.components == seg.components
        ):
            merged[-1] = Segment(
                prev.start_age, seg.end_age, prev.annual_amount, prev.label, prev.components,
            )
        else:
            merged.append(seg)
    return merged


def _cuts(scenario: Scenario) -> list[int]:
    streams = breakpoint_streams(scenario)
    return merge_breakpoints(
        scenario.current_age,
        streams.pre_old_age.values(),
        streams.old_age.values(),
        scenario.claim_age,
    )


def phase_schedule(scenario: Scenario) -> list[tuple[int, Phase]]:
    """Ordered (breakpoint age, formula selector) pairs; the last cut (100) is omitted."""
    return [(age, select_phase(scenario, age)) for age in _cuts(scenario)[:-1]]


def segment_timeline(scenario: Scenario) -> list[Segment]:
    """One segment per breakpoint pair, amount held at its value at the segment start."""
    cuts = _cuts(scenario)
    segments = []
    for start, end in zip(cuts, cuts[1:]):
        result = compute_benefit(scenario, start)
        segments.append(Segment(start, end, result.total, result.label, result.components))
    return merge_equal_segments(segments)


def tail_segments(plan: DeferralPlan, start_age: int, terminal: int = END_AGE) -> list[Segment]:
    """Deferred pension segment from ``max(switch_age, start_age)``; empty for pattern A."""
    if not plan.is_switch:
        return []
    switch_age = max(plan.switch_age, start_age)
    if switch_age >= terminal:
        return []
    return [Segment(
        switch_age, terminal, plan.deferred_total,
        Phase.DEFERRED_OLD_AGE.label, plan.deferred_components,
    )]


def apply_deferral_plan(segments: list[Segment], plan: DeferralPlan) -> list[Segment]:
    """Cut ``segments`` (claimed at 65) at the switch age and continue with the deferred pension.

    Segments before the switch age are kept as evaluated, so old-age
    breakpoints inside ``[65, switch_age)`` (spouse turning 65, end of a
    fixed-term benefit) still apply.
    """
    if not segments or not plan.is_switch:
        return merge_equal_segments(segments)
    switch_age = max(plan.switch_age, segments[0].start_age)
    terminal = segments[-1].end_age
    head = []
    for seg in segments:
        if seg.start_age >= switch_age:
            break
        end = min(seg.end_age, switch_age)
        head.append(Segment(seg.start_age, end, seg.annual_amount, seg.label, seg.components))
    return merge_equal_segments(head + tail_segments(plan, switch_age, terminal))


def build_timeline(scenario: Scenario) -> list[Segment]:
    """Segments exactly tiling ``[current_age, 100)`` for ``scenario``.

    With ``optimize_deferral`` the claimant is evaluated as claiming at 65 and
    the tail is switched to the deferred pension per the deferral plan.
    """
    if scenario.optimize_deferral:
        plan = optimize_deferral(scenario)
        if plan is not None:
            base = scenario.with_claim_age(STANDARD_CLAIM_AGE)
            return apply_deferral_plan(segment_timeline(base), plan)
    return segment_timeline(scenario)


def amount_at(segments: list[Segment], age: int) -> float:
    """Annual benefit at ``age`` (0 outside the timeline)."""
    for seg in segments:
        if seg.contains(age):
            return seg.annual_amount
    return 0.0
