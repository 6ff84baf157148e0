"""
Unit tests for solution outlines and the struggle/hint state machine.
"""

import pytest

from adaptive_scheduler.core.errors import InvalidRecordError
from adaptive_scheduler.core.mastery import MasteryLevel
from adaptive_scheduler.tutoring.solution_path import SolutionOutline
from adaptive_scheduler.tutoring.struggle import (
    StruggleState,
    TurnEvent,
    advance_struggle_state,
    classify_mastery_from_outline,
    current_hint,
    current_step,
    detect_struggle_keywords,
    finalize_attempt,
    format_step_context,
    is_last_step,
    progress_percentage,
    start_struggle_state,
    struggle_data_from_state,
)


class TestSolutionOutline:
    def test_parses_camel_case(self, outline):
        assert outline.problem_type == "Linear Equation"
        assert len(outline.approaches) == 2
        step = outline.step(0, 0)
        assert step.action == "Subtract 3 from both sides"
        assert step.hints.level2 == "Undo the +3 on the left side"
        assert step.key_concepts == ("inverse operations",)

    def test_step_count(self, outline):
        assert outline.step_count() == 2
        assert outline.step_count(1) == 1
        assert outline.step_count(7) == 0

    def test_out_of_range_recommendation_defaults_to_first(self, outline_data):
        outline_data["recommendedApproachIndex"] = 9
        assert SolutionOutline.from_dict(outline_data).recommended_approach_index == 0

    @pytest.mark.parametrize("data", [{}, {"approaches": []}, {"approaches": [{"steps": [{}]}]}])
    def test_malformed_outline_raises(self, data):
        with pytest.raises(InvalidRecordError):
            SolutionOutline.from_dict(data)


class TestKeywordDetection:
    @pytest.mark.parametrize(
        "message",
        ["I don't know", "i dont know what to do", "I'm stuck", "so confused", "no idea", "Help!", "what do I do?"],
    )
    def test_struggle_phrases(self, message):
        assert detect_struggle_keywords(message)

    @pytest.mark.parametrize("message", ["x = 2", "That was helpful", "I'm not lost at all... wait", ""])
    def test_other_messages(self, message):
        # "lost" is a struggle word even when negated
        expected = "lost" in message
        assert detect_struggle_keywords(message) is expected

    def test_curly_apostrophe(self):
        assert detect_struggle_keywords("I don’t know")


class TestAdvance:
    def test_keyword_raises_level_and_hint(self, outline):
        state = start_struggle_state(outline)
        state = advance_struggle_state(state, TurnEvent("I'm stuck"), outline)
        assert state.turns_taken == 1
        assert state.keyword_struggle_count == 1
        assert state.effective_struggle_level == 1
        assert state.hints_shown == 1
        assert current_hint(state, outline) == "What is added to 2x?"

    def test_no_struggle_no_hint(self, outline):
        state = advance_struggle_state(start_struggle_state(outline), TurnEvent("x = 2?"), outline)
        assert state.effective_struggle_level == 0
        assert current_hint(state, outline) is None
        assert state.hints_shown == 0

    def test_external_assessment_takes_max(self, outline):
        state = start_struggle_state(outline)
        state = advance_struggle_state(state, TurnEvent("hmm", ai_struggle_assessment=3), outline)
        assert state.effective_struggle_level == 3
        assert current_hint(state, outline) == "2x + 3 - 3 = 7 - 3"

    def test_assessment_is_clamped(self, outline):
        state = advance_struggle_state(
            start_struggle_state(outline), TurnEvent("hmm", ai_struggle_assessment=9), outline
        )
        assert state.ai_struggle_assessment == 3

    def test_boolean_assessment_maps_to_two(self, outline):
        state = advance_struggle_state(
            start_struggle_state(outline), TurnEvent("hmm", ai_struggle_assessment=True), outline
        )
        assert state.effective_struggle_level == 2

    def test_level_capped_at_three(self, outline):
        state = start_struggle_state(outline)
        for _ in range(5):
            state = advance_struggle_state(state, TurnEvent("I don't know"), outline)
        assert state.keyword_struggle_count == 5
        assert state.effective_struggle_level == 3
        # Levels 1-3 each show a new hint; the last two phrases are clarifications
        assert state.hints_shown == 3
        assert state.clarification_requests == 2

    def test_hint_counted_once_per_level(self, outline):
        state = advance_struggle_state(start_struggle_state(outline), TurnEvent("I'm stuck"), outline)
        for _ in range(3):
            state = advance_struggle_state(state, TurnEvent("let me think"), outline)
        assert state.effective_struggle_level == 1
        assert state.hints_shown == 1

    def test_new_step_hints_count_again(self, outline):
        state = start_struggle_state(outline)
        state = advance_struggle_state(state, TurnEvent("stuck", step_completed=True), outline)
        state = advance_struggle_state(state, TurnEvent("stuck again"), outline)
        assert state.step_index == 1
        assert state.hints_shown == 2

    def test_step_completion_advances_and_resets(self, outline):
        state = start_struggle_state(outline)
        state = advance_struggle_state(state, TurnEvent("stuck", incorrect_attempt=True), outline)
        state = advance_struggle_state(state, TurnEvent("2x = 4", step_completed=True), outline)
        assert state.step_index == 1
        assert state.keyword_struggle_count == 0
        assert state.incorrect_attempt_count == 0
        assert state.effective_struggle_level == 0
        assert state.total_keyword_struggles == 1
        assert state.total_incorrect_attempts == 1
        assert is_last_step(state, outline)

    def test_completing_last_step_completes_problem(self, outline):
        state = StruggleState(step_index=1)
        state = advance_struggle_state(state, TurnEvent("x = 2", step_completed=True), outline)
        assert state.completed
        assert progress_percentage(state, outline) == 100

    def test_alternative_approach_switches_and_resets(self, outline):
        state = advance_struggle_state(start_struggle_state(outline), TurnEvent("stuck"), outline)
        state = advance_struggle_state(state, TurnEvent("try 2?", alternative_approach_index=1), outline)
        assert (state.approach_index, state.step_index) == (1, 0)
        assert state.effective_struggle_level == 0
        assert current_step(state, outline).action == "Try x = 2"

    def test_unknown_alternative_ignored(self, outline):
        state = advance_struggle_state(
            start_struggle_state(outline), TurnEvent("hmm", alternative_approach_index=5), outline
        )
        assert state.approach_index == 0

    def test_explicit_completion(self, outline):
        state = advance_struggle_state(
            start_struggle_state(outline), TurnEvent("x = 2", problem_completed=True), outline
        )
        assert state.completed

    def test_completed_state_ignores_events(self, outline):
        done = StruggleState(completed=True, turns_taken=4)
        assert advance_struggle_state(done, TurnEvent("help"), outline) is done

    def test_transition_is_pure(self, outline):
        state = start_struggle_state(outline)
        advance_struggle_state(state, TurnEvent("stuck", step_completed=True), outline)
        assert state == StruggleState()

    def test_without_outline_step_advances(self):
        state = advance_struggle_state(StruggleState(), TurnEvent("done", step_completed=True))
        assert state.step_index == 1
        assert not state.completed


class TestQueries:
    def test_progress_percentage(self, outline):
        assert progress_percentage(StruggleState(), outline) == 0
        assert progress_percentage(StruggleState(step_index=1), outline) == 50

    def test_format_step_context(self, outline):
        state = StruggleState(effective_struggle_level=2)
        context = format_step_context(outline, state)
        assert "Current Approach: Inverse operations" in context
        assert "Step 1 of 2: Subtract 3 from both sides" in context
        assert "Undo the +3 on the left side" in context
        assert "Key Concepts: inverse operations" in context
        assert "Next Step Preview: Divide both sides by 2" in context

    def test_format_step_context_outside_outline(self, outline):
        assert format_step_context(outline, StruggleState(approach_index=4)) == ""


class TestFinalize:
    def test_smooth_attempt_is_mastered(self, outline):
        state = start_struggle_state(outline)
        state = advance_struggle_state(state, TurnEvent("subtract 3", step_completed=True), outline)
        state = advance_struggle_state(state, TurnEvent("x = 2", step_completed=True), outline)
        assert state.completed
        assert finalize_attempt(state, outline) == MasteryLevel.MASTERED

    def test_struggle_downgrades(self, outline):
        state = start_struggle_state(outline)
        for message in ("I'm stuck", "still confused"):
            state = advance_struggle_state(state, TurnEvent(message), outline)
        state = advance_struggle_state(state, TurnEvent("2x = 4", step_completed=True), outline)
        state = advance_struggle_state(state, TurnEvent("x = 2", step_completed=True), outline)
        # 4 turns for 2 steps -> mastered; 2 hints -> 0.30 -> competent
        assert state.hints_shown == 2
        assert state.clarification_requests == 0
        assert finalize_attempt(state, outline) == MasteryLevel.COMPETENT

    def test_single_struggle_phrase_does_not_spoil_efficient_solve(self, outline):
        state = start_struggle_state(outline)
        for event in (
            TurnEvent("I'm stuck"),
            TurnEvent("oh, subtract 3?"),
            TurnEvent("2x = 4", step_completed=True),
            TurnEvent("x = 2", step_completed=True),
        ):
            state = advance_struggle_state(state, event, outline)
        data = struggle_data_from_state(state)
        assert (data.hints_requested, data.clarification_requests) == (1, 0)
        assert finalize_attempt(state, outline) == MasteryLevel.MASTERED

    def test_external_drop_and_rise_counts_one_hint(self, outline):
        state = start_struggle_state(outline)
        for assessment in (2, 0, 2):
            state = advance_struggle_state(
                state, TurnEvent("hmm", ai_struggle_assessment=assessment), outline
            )
        assert state.hints_shown == 1

    def test_without_outline_uses_basic_rule(self):
        assert finalize_attempt(StruggleState(turns_taken=7)) == MasteryLevel.COMPETENT

    def test_no_turns_defaults(self, outline):
        assert finalize_attempt(StruggleState(), outline) == MasteryLevel.STRUGGLING

    def test_classify_mastery_from_outline(self, outline):
        assert classify_mastery_from_outline(4, outline) == MasteryLevel.MASTERED
        # Single-step approach: 2 expected turns / 5 taken = 0.4
        assert classify_mastery_from_outline(5, outline, approach_index=1) == MasteryLevel.STRUGGLING
