"""
Прогон эпизода create -> end -> преемник на mock-провайдере.
Используется для ручных проверок и dev-отладки (нужен Redis из REDIS_URL).
"""

from __future__ import annotations

from party_meetings.auth.token_broker import MockTokenBroker
from party_meetings.common.logging import setup_logging
from party_meetings.connectors.meet.mock import MockMeetConnector
from party_meetings.domain.models import InternalIdentity
from party_meetings.services.meeting_session_service import MeetingSessionController
from party_meetings.storage.episodes import EpisodeStore, PartyOperationLock
from party_meetings.storage.memory import InMemoryPersistenceGateway

setup_logging()

provider = MockMeetConnector()
gateway = InMemoryPersistenceGateway()
gateway.add_member("demo-party", InternalIdentity(party_member_id="org", username="captain"))
gateway.add_member("demo-party", InternalIdentity(party_member_id="u-1", username="alice"))

controller = MeetingSessionController(
    provider=provider,
    token_broker=MockTokenBroker(),
    gateway=gateway,
    roster=gateway,
    episodes=EpisodeStore(),
    lock=PartyOperationLock(),
)

session = controller.create("demo-party", organizer_id="org")
conf = provider.records[0]["name"].split("/")[-1]
provider.add_participant(conf, {"signedinUser": {"displayName": "alice"}})
provider.add_transcript(conf, {"name": f"conferenceRecords/{conf}/transcripts/t-1", "state": "ENDED"})

report = controller.end(session)
print("Ended:", report.ended.id, report.ended.actual_end)
print("Successor:", report.successor.id if report.successor else None)
for step in report.steps:
    print(f"  {step.step}: {step.outcome.value} {step.reason or ''}")
