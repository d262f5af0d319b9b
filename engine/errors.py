from __future__ import annotations


class EngineError(Exception):
    pass


class SubjectNotFound(EngineError):
    def __init__(self, subject_id: str) -> None:
        super().__init__(f"Subject not found: {subject_id}")
        self.subject_id = subject_id
