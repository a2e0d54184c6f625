"""Tests for the auto-task detector."""

from jackmem.memory.detector import AutoTaskDetector, classify, split_sentences
from jackmem.state import TaskPriority, TaskType


class TestSplitSentences:
    """Tests for split_sentences()."""

    def test_split_on_punctuation_runs(self):
        text = "Build the landing page!!! Then review the copy?! Done."
        assert split_sentences(text) == ["Build the landing page", "Then review the copy"]

    def test_short_sentences_dropped(self):
        # "Fix it" and "Exactly ten" have 6 and 11 characters
        assert split_sentences("Fix it. Exactly ten") == ["Exactly ten"]

    def test_ten_characters_is_too_short(self):
        assert split_sentences("abcdefghij") == []


class TestClassify:
    """Tests for classify()."""

    def test_first_pattern_wins(self):
        assert classify("Write tests for the parser") == (TaskType.CODING, TaskPriority.HIGH)

    def test_substring_match_without_word_boundaries(self):
        # "address" contains "add"
        assert classify("The address field looks odd") == (TaskType.CODING, TaskPriority.HIGH)

    def test_case_insensitive(self):
        assert classify("PLEASE DEBUG THIS") == (TaskType.DEBUGGING, TaskPriority.HIGH)

    def test_documentation_is_low(self):
        assert classify("Describe how login works") == (TaskType.DOCUMENTATION, TaskPriority.LOW)

    def test_no_match(self):
        assert classify("Hello there my friend") is None


class TestAutoTaskDetector:
    """Tests for AutoTaskDetector.detect()."""

    def test_two_requests(self):
        candidates = AutoTaskDetector().detect("Please fix the login bug. Also write tests for the parser.")
        assert [(c.description, c.type, c.priority) for c in candidates] == [
            ("Please fix the login bug", TaskType.DEBUGGING, TaskPriority.HIGH),
            ("Also write tests for the parser", TaskType.CODING, TaskPriority.HIGH),
        ]

    def test_nothing_detected(self):
        assert AutoTaskDetector().detect("Good morning to you. How are you today?") == []

    def test_empty_input(self):
        assert AutoTaskDetector().detect("") == []

    def test_no_dedup(self):
        detector = AutoTaskDetector()
        text = "Optimize the image loading."
        assert detector.detect(text) == detector.detect(text)
        assert len(detector.detect(f"{text} {text}")) == 2
