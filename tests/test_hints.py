"""Tests for ordered hint disclosure."""

from codepractice.session.hints import HintDisclosure


class TestHintDisclosure:
    def test_starts_hidden(self, problem):
        hints = HintDisclosure()
        assert hints.level == 0
        assert hints.visible_hints(problem) == []

    def test_reveal_is_idempotent(self):
        hints = HintDisclosure()
        assert hints.reveal(1) is True
        assert hints.reveal(1) is False
        assert hints.level == 1

    def test_cannot_skip_a_level(self):
        hints = HintDisclosure()
        assert hints.reveal(2) is False
        assert hints.level == 0

    def test_reveal_in_order(self, problem):
        hints = HintDisclosure()
        hints.reveal(1)
        hints.reveal(2)
        assert hints.level == 2
        assert hints.visible_hints(problem) == [
            'Try every pair.',
            'Use a hash map of seen values.',
        ]

    def test_lower_level_is_noop(self):
        hints = HintDisclosure()
        hints.reveal(1)
        hints.reveal(2)
        assert hints.reveal(1) is False
        assert hints.reveal(0) is False
        assert hints.level == 2

    def test_out_of_range_levels_ignored(self):
        hints = HintDisclosure()
        hints.reveal(1)
        hints.reveal(2)
        assert hints.reveal(3) is False
        assert hints.reveal(-1) is False
        assert hints.level == 2
