"""
Auto-Task Detector - derive task candidates from free-text user input.

Each sentence of the input is matched against an ordered list of keyword
patterns. The first pattern in list order that matches decides the task
type and priority for that sentence, even when a later pattern fits the
meaning better ("write tests" is coding, not testing).
"""

import re
from dataclasses import dataclass

from jackmem.state import TaskPriority, TaskType

# Sentences must be longer than this (after trimming) to count
MIN_SENTENCE_LENGTH = 10

SENTENCE_SPLIT = re.compile(r"[.!?]+")

# Order matters: first match wins. Plain substring matches, no word boundaries.
TASK_PATTERNS: list[tuple[re.Pattern, TaskType, TaskPriority]] = [
    (re.compile(r"implement|create|build|add|write", re.IGNORECASE), TaskType.CODING, TaskPriority.HIGH),
    (re.compile(r"fix|debug|resolve|solve", re.IGNORECASE), TaskType.DEBUGGING, TaskPriority.HIGH),
    (re.compile(r"test|verify|validate|check", re.IGNORECASE), TaskType.TESTING, TaskPriority.MEDIUM),
    (re.compile(r"analyze|review|examine|investigate", re.IGNORECASE), TaskType.ANALYSIS, TaskPriority.MEDIUM),
    (re.compile(r"research|find|search|explore", re.IGNORECASE), TaskType.RESEARCH, TaskPriority.MEDIUM),
    (re.compile(r"optimize|improve|enhance|refactor", re.IGNORECASE), TaskType.OPTIMIZATION, TaskPriority.MEDIUM),
    (re.compile(r"document|explain|describe", re.IGNORECASE), TaskType.DOCUMENTATION, TaskPriority.LOW),
]


@dataclass(frozen=True)
class TaskCandidate:
    """A task suggested by the detector."""

    description: str
    type: TaskType
    priority: TaskPriority


def split_sentences(text: str) -> list[str]:
    """Split on runs of . ! ? and keep trimmed sentences long enough to be tasks."""
    sentences = (part.strip() for part in SENTENCE_SPLIT.split(text))
    return [s for s in sentences if len(s) > MIN_SENTENCE_LENGTH]


def classify(sentence: str) -> tuple[TaskType, TaskPriority] | None:
    """Type and priority from the first matching pattern, or None."""
    for pattern, task_type, priority in TASK_PATTERNS:
        if pattern.search(sentence):
            return task_type, priority
    return None


class AutoTaskDetector:
    """
    Turns user utterances into task candidates.

    No deduplication: the same request on two turns yields two candidates.
    """

    def detect(self, text: str) -> list[TaskCandidate]:
        """
        Find task candidates in text, at most one per sentence.

        Returns:
            Candidates in sentence order; empty if nothing matched
        """
        candidates = []
        for sentence in split_sentences(text or ""):
            match = classify(sentence)
            if match is not None:
                task_type, priority = match
                candidates.append(TaskCandidate(description=sentence, type=task_type, priority=priority))
        return candidates
