import asyncio

import pytest

from lumacalm.client.breathing import MOTIVATIONAL_MESSAGES, BreathingExercise, BreathingPhase


class TestTransitions:
    def test_initial_state(self):
        exercise = BreathingExercise()

        assert exercise.phase is BreathingPhase.INHALE
        assert exercise.instruction == "Breathe in..."
        assert exercise.message == MOTIVATIONAL_MESSAGES[0]
        assert not exercise.running

    def test_toggle_phase(self):
        exercise = BreathingExercise()

        exercise.toggle_phase()
        assert exercise.phase is BreathingPhase.EXHALE
        assert exercise.instruction == "Breathe out..."

        exercise.toggle_phase()
        assert exercise.phase is BreathingPhase.INHALE

    def test_messages_wrap_around(self):
        exercise = BreathingExercise()

        for _ in range(len(MOTIVATIONAL_MESSAGES)):
            exercise.next_message()

        assert exercise.message_index == 0

    def test_on_change_called_for_each_transition(self):
        seen = []
        exercise = BreathingExercise(on_change=lambda ex: seen.append((ex.phase, ex.message_index)))

        exercise.toggle_phase()
        exercise.next_message()

        assert seen == [(BreathingPhase.EXHALE, 0), (BreathingPhase.EXHALE, 1)]


class TestTimers:
    @pytest.mark.asyncio
    async def test_start_schedules_both_timers(self):
        async with BreathingExercise(breath_interval=4.0, message_interval=8.0) as exercise:
            loop = asyncio.get_running_loop()

            assert exercise.running
            assert exercise._breath_timer.when() - loop.time() == pytest.approx(4.0, abs=0.5)
            assert exercise._message_timer.when() - loop.time() == pytest.approx(8.0, abs=0.5)

        assert not exercise.running

    @pytest.mark.asyncio
    async def test_timer_callbacks_transition_and_reschedule(self):
        async with BreathingExercise(breath_interval=4.0, message_interval=8.0) as exercise:
            first_breath = exercise._breath_timer
            first_message = exercise._message_timer

            exercise._on_breath_timer()
            assert exercise.phase is BreathingPhase.EXHALE
            assert exercise.message_index == 0
            assert exercise._breath_timer is not first_breath

            exercise._on_breath_timer()
            exercise._on_message_timer()
            assert exercise.phase is BreathingPhase.INHALE
            assert exercise.message_index == 1
            assert exercise._message_timer is not first_message

    @pytest.mark.asyncio
    async def test_breath_timer_fires_on_loop(self):
        seen = []
        changed = asyncio.Event()

        def record(ex):
            seen.append((ex.phase, ex.message_index))
            changed.set()

        exercise = BreathingExercise(breath_interval=0.01, message_interval=60.0, on_change=record)

        async with exercise:
            await asyncio.wait_for(changed.wait(), timeout=5.0)

        assert seen[0] == (BreathingPhase.EXHALE, 0)

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_callbacks(self):
        exercise = BreathingExercise(breath_interval=0.01, message_interval=0.01)
        exercise.start()
        breath_timer, message_timer = exercise._breath_timer, exercise._message_timer
        exercise.stop()

        assert breath_timer.cancelled()
        assert message_timer.cancelled()

        await asyncio.sleep(0.05)

        assert exercise.phase is BreathingPhase.INHALE
        assert exercise.message_index == 0

    @pytest.mark.asyncio
    async def test_exit_on_error_still_stops(self):
        exercise = BreathingExercise(breath_interval=0.05, message_interval=0.05)

        with pytest.raises(RuntimeError):
            async with exercise:
                raise RuntimeError("view crashed")

        assert not exercise.running

    @pytest.mark.asyncio
    async def test_start_and_stop_are_idempotent(self):
        exercise = BreathingExercise()

        exercise.start()
        exercise.start()
        assert exercise.running

        exercise.stop()
        exercise.stop()
        assert not exercise.running
