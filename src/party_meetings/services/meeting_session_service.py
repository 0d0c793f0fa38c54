"""
MeetingSessionController: жизненный цикл сессии встречи party.

Содержит:
- detect/active: какая сессия party сейчас активна
- create: токен на весь эпизод -> пространство у провайдера -> upsert в backend
- end: завершение конференции (best-effort) -> поиск записи конференции ->
  reconciliation участников и сбор транскриптов -> push в backend ->
  actual_end -> сразу новая сессия-преемник
- sync_recordings: отложенная отправка записи встречи

Все операции над party сериализуются party-локом (single in-flight).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta

from party_meetings.auth.token_broker import ScopeTokenBroker, resolve_token_broker
from party_meetings.common.config import get_settings
from party_meetings.common.errors import (
    AppError,
    ConflictError,
    ErrCode,
    NotFoundError,
    ProviderError,
    SessionFinalizeError,
    ValidationError,
)
from party_meetings.common.logging import get_project_logger
from party_meetings.common.metrics import (
    SESSIONS_CREATED_TOTAL,
    record_session_end,
    track_step_latency,
)
from party_meetings.common.time import to_iso, utc_now
from party_meetings.connectors.base import ConferencingProvider
from party_meetings.connectors.meet.adapter import GoogleMeetConnector
from party_meetings.connectors.meet.mock import MockMeetConnector
from party_meetings.connectors.meet.payloads import (
    extract_meeting_code,
    last_segment,
    space_from_payload,
)
from party_meetings.domain.active_session import detect_active
from party_meetings.domain.enums import (
    EPISODE_CAPABILITIES,
    READ_CAPABILITIES,
    Capability,
    MeetingStatus,
)
from party_meetings.domain.models import (
    AccessToken,
    MeetingDetails,
    MeetingSession,
    SessionEpisode,
    TimeWindow,
)
from party_meetings.domain.results import EndReport, StepResult
from party_meetings.services.artifact_collector import collect_recording, collect_transcripts
from party_meetings.services.cancellation import NEVER_CANCELLED, CancellationToken
from party_meetings.services.participant_reconciler import fetch_attendees, reconcile
from party_meetings.services.record_resolver import resolve_for_space, resolve_latest
from party_meetings.storage.episodes import EpisodeStore, PartyOperationLock
from party_meetings.storage.gateway import PartyRosterSource, PersistenceGateway
from party_meetings.storage.http_gateway import HttpPersistenceGateway
from party_meetings.storage.memory import InMemoryPersistenceGateway

log = get_project_logger()

RECORDING_CAPABILITIES = READ_CAPABILITIES | {Capability.document_read}


class MeetingSessionController:
    def __init__(
        self,
        *,
        provider: ConferencingProvider,
        token_broker: ScopeTokenBroker,
        gateway: PersistenceGateway,
        roster: PartyRosterSource,
        episodes: EpisodeStore,
        lock: PartyOperationLock,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        s = get_settings()
        self.provider = provider
        self.token_broker = token_broker
        self.gateway = gateway
        self.roster = roster
        self.episodes = episodes
        self.lock = lock
        self.clock = clock
        self.default_title = s.meeting_default_title
        self.default_duration_min = max(1, int(s.meeting_default_duration_min))
        self.record_page_size = max(1, int(s.meet_record_page_size))
        self.viewer_base = s.meet_viewer_base
        self.recording_sync_delay_sec = max(0, int(s.recording_sync_delay_sec))

    # ------------------------------------------------------------------
    # чтение
    # ------------------------------------------------------------------
    def list_party_meetings(self, party_id: str) -> list[MeetingSession]:
        return self.gateway.list_party_meetings(party_id)

    def active_for_party(self, party_id: str) -> MeetingSession | None:
        return detect_active(self.gateway.list_party_meetings(party_id), now=self.clock())

    def meeting_details(self, session_id: str) -> MeetingDetails:
        return self.gateway.get_meeting_details(session_id)

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------
    def create(
        self,
        party_id: str,
        *,
        organizer_id: str,
        title: str | None = None,
        window: TimeWindow | None = None,
    ) -> MeetingSession:
        with self.lock.hold(party_id, operation="create"):
            active = self.active_for_party(party_id)
            if active is not None:
                raise ConflictError(
                    "У party уже есть активная встреча",
                    details={"party_id": party_id, "meeting_id": active.id},
                )
            episode = self._start_episode(
                party_id, organizer_id=organizer_id, title=title, window=window
            )
        SESSIONS_CREATED_TOTAL.labels(trigger="manual").inc()
        return episode.session

    def _start_episode(
        self,
        party_id: str,
        *,
        organizer_id: str,
        title: str | None,
        window: TimeWindow | None,
    ) -> SessionEpisode:
        if not party_id or not organizer_id:
            raise ValidationError("party_id и organizer_id обязательны")

        # Все скоупы эпизода сразу: без второго consent при end
        token = self.token_broker.request_token(EPISODE_CAPABILITIES)
        space = space_from_payload(self.provider.create_space(token.value, {}))
        if not space.join_uri:
            raise ProviderError(
                ErrCode.CONNECTOR_PROVIDER_ERROR,
                "Провайдер не вернул ссылку на встречу",
                details={"space": space.space_name},
            )

        now = self.clock()
        window = window or TimeWindow.starting_at(now, minutes=self.default_duration_min)
        draft = MeetingSession(
            party_id=party_id,
            organizer_id=organizer_id,
            title=(title or "").strip() or self.default_title,
            scheduled_start=window.start,
            scheduled_end=window.end,
            join_link=space.join_uri,
            actual_start=now,
            meeting_code=space.meeting_code,
            space_name=space.space_name,
            status=MeetingStatus.active,
        )
        saved = self.gateway.upsert_session(draft)
        session = replace(
            saved,
            join_link=saved.join_link or space.join_uri,
            meeting_code=saved.meeting_code or space.meeting_code,
            space_name=saved.space_name or space.space_name,
        )
        episode = SessionEpisode(
            party_id=party_id, session=session, token=token, space=space, started_at=now
        )
        self._remember(episode)
        log.info(
            "meeting_session_created",
            extra={
                "payload": {
                    "party_id": party_id,
                    "meeting_id": session.id,
                    "space": space.space_name,
                }
            },
        )
        return episode

    def _remember(self, episode: SessionEpisode) -> None:
        try:
            self.episodes.save(episode)
        except Exception as e:
            log.warning(
                "episode_cache_write_failed",
                extra={"payload": {"party_id": episode.party_id, "error": str(e)[:200]}},
            )

    def _recall(self, party_id: str) -> SessionEpisode | None:
        try:
            return self.episodes.load(party_id)
        except Exception as e:
            log.warning(
                "episode_cache_read_failed",
                extra={"payload": {"party_id": party_id, "error": str(e)[:200]}},
            )
            return None

    def _forget(self, party_id: str) -> None:
        try:
            self.episodes.clear(party_id)
        except Exception as e:
            log.warning(
                "episode_cache_clear_failed",
                extra={"payload": {"party_id": party_id, "error": str(e)[:200]}},
            )

    def _token_for(
        self,
        episode: SessionEpisode | None,
        required: frozenset[Capability],
        *,
        request: frozenset[Capability],
    ) -> AccessToken:
        cached = episode.token if episode else None
        if cached is not None and cached.covers(required, self.clock()):
            return cached
        return self.token_broker.request_token(request)

    # ------------------------------------------------------------------
    # end
    # ------------------------------------------------------------------
    def end(
        self,
        session: MeetingSession,
        *,
        episode: SessionEpisode | None = None,
        cancellation: CancellationToken | None = None,
    ) -> EndReport:
        if not session.id:
            raise ValidationError("Нет встречи для завершения")
        cancel = cancellation or NEVER_CANCELLED

        try:
            with self.lock.hold(session.party_id, operation="end") as lease:
                session = self._require_open(session)

                def checkpoint(step: str) -> None:
                    cancel.raise_if_cancelled(step=step)
                    lease.extend()

                report = self._end_impl(session, episode=episode, checkpoint=checkpoint)
        except SessionFinalizeError:
            record_session_end("finalize_failed")
            raise
        except AppError as e:
            record_session_end(e.code if e.code in {"conflict", "cancelled"} else "error")
            raise
        record_session_end("ok")
        return report

    def _require_open(self, session: MeetingSession) -> MeetingSession:
        """
        Актуальное состояние сессии из persistence (под локом party).
        Уже завершённую сессию повторно не завершаем: иначе появится второй преемник.
        """
        current = next(
            (s for s in self.gateway.list_party_meetings(session.party_id) if s.id == session.id),
            session,
        )
        if current.actual_end is not None:
            raise ConflictError(
                "Встреча уже завершена",
                details={"meeting_id": session.id, "actual_end": to_iso(current.actual_end)},
            )
        return current

    def _end_impl(
        self,
        session: MeetingSession,
        *,
        episode: SessionEpisode | None,
        checkpoint: Callable[[str], None],
    ) -> EndReport:
        party_id = session.party_id
        report = EndReport(ended=session)
        episode = episode or self._recall(party_id)
        if episode is not None and episode.session.id != session.id:
            episode = replace(episode, space=None)

        token = self._token_for(episode, READ_CAPABILITIES, request=EPISODE_CAPABILITIES)
        checkpoint("terminate")

        with track_step_latency("terminate"):
            self._record(report, self._terminate(token, session, episode))
        checkpoint("resolve")

        with track_step_latency("resolve"):
            record = resolve_latest(self.provider, token.value, page_size=self.record_page_size)
        if record is None:
            self._record(report, StepResult.fatal("resolve", "no_conference_records"))
            log.error(
                "meeting_end_resolve_failed",
                extra={"payload": {"party_id": party_id, "meeting_id": session.id}},
            )
            raise SessionFinalizeError(
                "Не удалось завершить сессию: записи конференции не найдены",
                details={"meeting_id": session.id},
            )
        self._record(report, StepResult.ok("resolve", record.conference_id))
        self._warn_on_space_mismatch(session, record.space)
        checkpoint("reconcile")

        with track_step_latency("reconcile"):
            participants = reconcile(
                fetch_attendees(self.provider, token.value, record.conference_id),
                self.roster.list_party_members(party_id),
                organizer_id=session.organizer_id,
                session_start=session.actual_start,
                session_id=session.id,
                now=self.clock(),
            )
        with track_step_latency("collect"):
            artifacts = collect_transcripts(
                self.provider, token.value, record.conference_id, viewer_base=self.viewer_base
            )
        checkpoint("persist")

        with track_step_latency("persist"):
            if participants:
                self.gateway.upsert_participants(session.id, participants)
                self._record(report, StepResult.ok("push_participants", len(participants)))
            else:
                self._record(report, StepResult.skipped("push_participants", "empty"))
            if artifacts:
                self.gateway.submit_artifacts(session.id, artifacts, access_token=token.value)
                self._record(report, StepResult.ok("push_artifacts", len(artifacts)))
            else:
                self._record(report, StepResult.skipped("push_artifacts", "empty"))

            ended = session.ended(self.clock())
            saved = self.gateway.upsert_session(ended)
            ended = replace(ended, id=saved.id or ended.id)
        report.ended = ended
        self._record(report, StepResult.ok("mark_ended", to_iso(ended.actual_end)))
        self._forget(party_id)
        log.info(
            "meeting_session_ended",
            extra={
                "payload": {
                    "party_id": party_id,
                    "meeting_id": ended.id,
                    "conference_id": record.conference_id,
                    "participants": len(participants),
                    "artifacts": len(artifacts),
                }
            },
        )

        try:
            successor = self._start_episode(
                party_id, organizer_id=session.organizer_id, title=session.title, window=None
            )
        except AppError as e:
            log.error(
                "meeting_successor_create_failed",
                extra={"payload": {"party_id": party_id, "ended_meeting_id": ended.id}},
            )
            e.details = {**(e.details or {}), "ended_meeting_id": ended.id}
            raise
        SESSIONS_CREATED_TOTAL.labels(trigger="successor").inc()
        report.successor = successor.session
        self._record(report, StepResult.ok("successor", successor.session.id))
        return report

    def _record(self, report: EndReport, result: StepResult) -> None:
        report.steps.append(result)
        emit = log.error if result.is_fatal else log.info
        emit(
            "meeting_end_step",
            extra={
                "payload": {
                    "meeting_id": report.ended.id,
                    "step": result.step,
                    "outcome": result.outcome.value,
                    "reason": result.reason,
                }
            },
        )

    def _terminate(
        self, token: AccessToken, session: MeetingSession, episode: SessionEpisode | None
    ) -> StepResult:
        target = (
            session.meeting_code
            or extract_meeting_code(session.join_link)
            or session.space_name
            or (episode.space.space_name if episode and episode.space else None)
        )
        if not target:
            return StepResult.skipped("terminate", "no_space_reference")
        try:
            self.provider.end_active_conference(token.value, target)
        except Exception as e:
            # Конференция обычно закрывается сама, когда все вышли
            log.warning(
                "meeting_terminate_failed",
                extra={
                    "payload": {
                        "meeting_id": session.id,
                        "target": target,
                        "error": str(e)[:300],
                    }
                },
            )
            return StepResult.skipped("terminate", "provider_error")
        return StepResult.ok("terminate", target)

    def _warn_on_space_mismatch(self, session: MeetingSession, record_space: str | None) -> None:
        expected = last_segment(session.space_name)
        actual = last_segment(record_space)
        if expected and actual and expected != actual:
            log.warning(
                "conference_record_space_mismatch",
                extra={
                    "payload": {
                        "meeting_id": session.id,
                        "expected_space": expected,
                        "record_space": actual,
                    }
                },
            )

    # ------------------------------------------------------------------
    # отложенная синхронизация записи
    # ------------------------------------------------------------------
    def sync_recordings(self, session: MeetingSession) -> MeetingSession:
        if not session.id:
            raise ValidationError("Нет встречи для синхронизации")
        if session.actual_end is None:
            raise ValidationError("Встреча ещё не завершена")
        ready_at = session.actual_end + timedelta(seconds=self.recording_sync_delay_sec)
        if self.clock() < ready_at:
            raise ValidationError(
                "Синхронизация доступна позже",
                details={"available_at": to_iso(ready_at)},
            )

        with self.lock.hold(session.party_id, operation="sync_recordings"):
            token = self._token_for(
                self._recall(session.party_id),
                RECORDING_CAPABILITIES,
                request=EPISODE_CAPABILITIES | RECORDING_CAPABILITIES,
            )
            space = session.space_name
            if not space:
                code = extract_meeting_code(session.join_link)
                if code:
                    space = self.provider.get_space(token.value, code).get("name")
            record = (
                resolve_for_space(
                    self.provider, token.value, space=space, page_size=self.record_page_size
                )
                if space
                else None
            )
            if record is None:
                raise NotFoundError(
                    "Запись конференции для встречи не найдена",
                    details={"meeting_id": session.id},
                )

            artifact = collect_recording(self.provider, token.value, record.conference_id)
            if artifact is None:
                raise NotFoundError(
                    "Запись встречи ещё не готова",
                    details={"meeting_id": session.id, "conference_id": record.conference_id},
                )
            self.gateway.submit_artifacts(session.id, [artifact], access_token=token.value)
            completed = self.gateway.upsert_session(
                replace(session, status=MeetingStatus.completed)
            )
        log.info(
            "meeting_recording_synced",
            extra={"payload": {"meeting_id": session.id, "conference_id": record.conference_id}},
        )
        return completed


def _resolve_provider() -> ConferencingProvider:
    provider = (get_settings().meet_provider or "mock").strip().lower()
    if provider == "google_meet":
        return GoogleMeetConnector()
    if provider == "mock":
        return MockMeetConnector()
    raise ProviderError(
        ErrCode.CONNECTOR_PROVIDER_ERROR,
        f"Неизвестный provider: {provider}",
        details={"allowed": "google_meet,mock"},
    )


def _resolve_gateway() -> HttpPersistenceGateway | InMemoryPersistenceGateway:
    mode = (get_settings().persistence_mode or "memory").strip().lower()
    if mode == "http":
        return HttpPersistenceGateway()
    if mode == "memory":
        return InMemoryPersistenceGateway()
    raise ProviderError(
        ErrCode.PERSISTENCE_ERROR,
        f"Неизвестный persistence mode: {mode}",
        details={"allowed": "http,memory"},
    )


def build_meeting_controller() -> MeetingSessionController:
    gateway = _resolve_gateway()
    return MeetingSessionController(
        provider=_resolve_provider(),
        token_broker=resolve_token_broker(),
        gateway=gateway,
        roster=gateway,
        episodes=EpisodeStore(),
        lock=PartyOperationLock(),
    )
