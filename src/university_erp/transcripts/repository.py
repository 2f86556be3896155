from __future__ import annotations

from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import TranscriptRequestStatus, TranscriptStatus
from .model import Transcript, TranscriptRequest


class TranscriptRepository(Protocol):
    # Transcripts
    def create_transcript(self, transcript: Transcript) -> int:
        """Insert the transcript and its course lines."""

        raise NotImplementedError

    def get_transcript(self, transcript_id: int) -> Optional[Transcript]:
        raise NotImplementedError

    def get_by_number(self, transcript_number: str) -> Optional[Transcript]:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[Transcript]:
        """Newest first, without course lines."""

        raise NotImplementedError

    def update_transcript_status(self, transcript_id: int, status: TranscriptStatus) -> bool:
        raise NotImplementedError

    # Requests
    def create_request(self, request: TranscriptRequest) -> int:
        raise NotImplementedError

    def get_request(self, request_id: int) -> Optional[TranscriptRequest]:
        raise NotImplementedError

    def save_request(self, request: TranscriptRequest) -> bool:
        raise NotImplementedError

    def list_requests_for_student(self, student_id: int) -> Sequence[TranscriptRequest]:
        raise NotImplementedError

    def list_requests_by_status(
        self, status: TranscriptRequestStatus, *, offset: int, limit: int
    ) -> Tuple[Sequence[TranscriptRequest], int]:
        raise NotImplementedError
