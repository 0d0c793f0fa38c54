from __future__ import annotations

from urllib.parse import urlparse

from party_meetings.common.errors import ErrCode, ProviderError
from party_meetings.connectors.meet.mock import MockMeetConnector
from party_meetings.domain.enums import ArtifactType
from party_meetings.services.artifact_collector import collect_recording, collect_transcripts


def test_transcript_without_export_gets_viewer_url() -> None:
    provider = MockMeetConnector()
    conf = provider.add_conference_record("spaces/s1")
    provider.add_transcript(conf, {"name": f"conferenceRecords/{conf}/transcripts/t-1", "state": "STARTED"})

    artifacts = collect_transcripts(provider, "t", conf, viewer_base="https://meet.google.com/")
    assert len(artifacts) == 1
    a = artifacts[0]
    assert a.artifact_type == ArtifactType.transcript
    assert a.state == "STARTED"
    assert a.export_uri is None
    parsed = urlparse(a.url)
    assert parsed.scheme == "https"
    assert parsed.netloc == "meet.google.com"
    assert parsed.path == f"/transcript/{conf}/t-1"


def test_transcript_prefers_export_location() -> None:
    provider = MockMeetConnector()
    conf = provider.add_conference_record()
    provider.add_transcript(
        conf,
        {
            "name": f"conferenceRecords/{conf}/transcripts/t-2",
            "state": "FILE_GENERATED",
            "docsDestination": {"document": "doc-7", "exportUri": "https://docs.google.com/d/doc-7"},
        },
        entries=[{"text": "hi"}],
    )

    [a] = collect_transcripts(provider, "t", conf, viewer_base="https://meet.google.com")
    assert a.url == "https://docs.google.com/d/doc-7"
    assert a.provider_document_id == "doc-7"


def test_entries_failure_does_not_drop_transcript(monkeypatch) -> None:
    provider = MockMeetConnector()
    conf = provider.add_conference_record()
    provider.add_transcript(conf, {"name": f"conferenceRecords/{conf}/transcripts/t-3"})

    def _boom(*_a, **_k):
        raise ProviderError(ErrCode.CONNECTOR_PROVIDER_ERROR, "not ready")

    monkeypatch.setattr(provider, "list_transcript_entries", _boom)
    assert len(collect_transcripts(provider, "t", conf, viewer_base="https://meet.google.com")) == 1


def test_recording_first_generated_with_drive_fallback() -> None:
    provider = MockMeetConnector()
    conf = provider.add_conference_record()
    provider.add_recording(conf, {"state": "STARTED", "driveDestination": {"file": "f-0"}})
    provider.add_recording(conf, {"state": "FILE_GENERATED", "driveDestination": {"file": "f-1"}})

    rec = collect_recording(provider, "t", conf)
    assert rec is not None
    assert rec.artifact_type == ArtifactType.recording
    assert rec.url == "https://drive.google.com/file/d/f-1/view"
    assert rec.provider_document_id == "f-1"


def test_recording_not_ready() -> None:
    provider = MockMeetConnector()
    conf = provider.add_conference_record()
    provider.add_recording(conf, {"state": "STARTED"})
    assert collect_recording(provider, "t", conf) is None
