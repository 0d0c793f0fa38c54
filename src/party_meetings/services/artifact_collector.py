"""
ArtifactCollector.

Назначение:
- транскрипты конференции -> ArtifactInput для backend-суммаризации
- запись (recording) для отложенной синхронизации после окончания встречи

Транскрипт без entries (ещё обрабатывается) всё равно отдаётся со своим state:
решение, что с ним делать, принимает backend.
"""

from __future__ import annotations

import re
from urllib.parse import quote

from party_meetings.common.errors import AppError
from party_meetings.common.logging import get_project_logger
from party_meetings.common.metrics import ARTIFACTS_COLLECTED_TOTAL
from party_meetings.connectors.base import ConferencingProvider
from party_meetings.connectors.meet.payloads import list_items, nested, resource_id
from party_meetings.domain.enums import ArtifactType
from party_meetings.domain.models import ArtifactInput

log = get_project_logger()

RECORDING_READY_STATE = "FILE_GENERATED"
_URL_JUNK_RE = re.compile(r"[`\s]+")


def _first_str(*values: object) -> str | None:
    for v in values:
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def transcript_viewer_url(viewer_base: str, conference_id: str, transcript_id: str) -> str:
    base = (viewer_base or "https://meet.google.com").rstrip("/")
    return f"{base}/transcript/{quote(conference_id, safe='')}/{quote(transcript_id, safe='')}"


def drive_viewer_url(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{quote(file_id, safe='')}/view"


def _count_entries(
    provider: ConferencingProvider, token: str, conference_id: str, transcript_id: str
) -> int | None:
    try:
        payload = provider.list_transcript_entries(token, conference_id, transcript_id)
    except AppError as e:
        log.warning(
            "transcript_entries_unavailable",
            extra={
                "payload": {
                    "conference_id": conference_id,
                    "transcript_id": transcript_id,
                    "error": e.message,
                }
            },
        )
        return None
    return len(list_items(payload, "transcriptEntries", "entries"))


def collect_transcripts(
    provider: ConferencingProvider,
    token: str,
    conference_id: str,
    *,
    viewer_base: str,
) -> list[ArtifactInput]:
    artifacts: list[ArtifactInput] = []
    for t in list_items(provider.list_transcripts(token, conference_id), "transcripts"):
        transcript_id = resource_id(t, "transcriptId", "id")
        if not transcript_id:
            log.warning("transcript_without_id", extra={"payload": {"keys": sorted(t)}})
            continue

        entries = _count_entries(provider, token, conference_id, transcript_id)
        export_uri = _first_str(
            nested(t, "docsDestination", "exportUri"),
            nested(t, "docsDocument", "uri"),
            nested(t, "docsDocument", "resourceUri"),
        )
        document_id = _first_str(
            nested(t, "docsDestination", "document"),
            nested(t, "docsDocument", "id"),
        )
        artifacts.append(
            ArtifactInput(
                artifact_type=ArtifactType.transcript,
                url=export_uri or transcript_viewer_url(viewer_base, conference_id, transcript_id),
                state=_first_str(t.get("state")),
                export_uri=export_uri,
                provider_document_id=document_id,
            )
        )
        log.info(
            "transcript_collected",
            extra={
                "payload": {
                    "conference_id": conference_id,
                    "transcript_id": transcript_id,
                    "state": t.get("state"),
                    "entries": entries,
                    "has_export": bool(export_uri),
                }
            },
        )

    ARTIFACTS_COLLECTED_TOTAL.labels(artifact_type=ArtifactType.transcript.value).inc(
        len(artifacts)
    )
    return artifacts


def collect_recording(
    provider: ConferencingProvider, token: str, conference_id: str
) -> ArtifactInput | None:
    """
    Первая готовая (FILE_GENERATED) запись конференции или None.
    """
    recordings = list_items(provider.list_recordings(token, conference_id), "recordings")
    ready = [r for r in recordings if r.get("state") == RECORDING_READY_STATE]
    if not ready:
        return None

    r = ready[0]
    file_id = _first_str(
        nested(r, "driveDestination", "file"),
        nested(r, "driveFile", "id"),
        nested(r, "docsDocument", "id"),
    )
    link = _first_str(
        nested(r, "driveDestination", "exportUri"),
        nested(r, "driveFile", "uri"),
        nested(r, "driveFile", "resourceUri"),
        nested(r, "docsDocument", "uri"),
        nested(r, "docsDocument", "resourceUri"),
    )
    if link:
        link = _URL_JUNK_RE.sub("", link)
    if not link and file_id:
        link = drive_viewer_url(file_id)
    if not link:
        return None

    ARTIFACTS_COLLECTED_TOTAL.labels(artifact_type=ArtifactType.recording.value).inc()
    return ArtifactInput(
        artifact_type=ArtifactType.recording,
        url=link,
        state=RECORDING_READY_STATE,
        export_uri=_first_str(nested(r, "driveDestination", "exportUri")),
        provider_document_id=file_id,
    )
