"""
DesignSession: host wrapper around one ConversationStore.

Responsibilities the engine deliberately leaves to its host:
- Serializing calls: one input at a time per session (threading.Lock)
- Optional coaching reply from the language model, requested only after the
  engine has committed its state change. A failed or discarded coaching call
  never rolls the state back.
- Transcript keeping and JSON save/load of the session

Usage:
    session = DesignSession.create(load_config(), ProjectContext(subject="Science"))
    turn = session.submit("Water as a shared resource")
    print(turn.text)
    session.save("sessions/water.json")
"""

import json
import os
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime

from openai import OpenAIError

from blueprint import compute_status, summarize_state
from config import AppConfig
from llm import ConversationManager, LLMClient
from logging_utils import LoggerAdapter, get_logger
from narrative import NarrativeGenerator
from prompts import COACH_SYSTEM_PROMPT, PROMPT_COACHING_REPLY
from state import ConversationState, InputSource, ProjectContext, StageId
from store import ConversationStore
from workflow import ConversationEngine, EngineResponse

logger = get_logger(__name__)


def build_coach(config: AppConfig, log_path: str | None = None) -> ConversationManager | None:
    """Coaching conversation, or None when the coach is disabled."""
    if not config.llm.enabled:
        return None
    client = LLMClient(config.llm, log_path=log_path)
    return ConversationManager(
        client,
        system_prompt=COACH_SYSTEM_PROMPT,
        token_budget=config.llm.history_token_budget,
    )


def build_coaching_prompt(teacher_input: str, response: EngineResponse) -> str:
    """Fill the coaching template from a committed engine response."""
    if response.stage_complete:
        decision = "accepted"
    elif response.success:
        decision = "needs confirmation"
    else:
        decision = "needs more work"

    return PROMPT_COACHING_REPLY.format(
        summary=summarize_state(response.new_state),
        stage=(response.stage_id or response.new_state.current_stage_id).display_name,
        teacher_input=teacher_input or "(none)",
        decision=decision,
        engine_message=response.message,
        suggestions="; ".join(response.suggestions) or "(none)",
    )


@dataclass(frozen=True)
class SessionTurn:
    """One engine response plus the optional coaching rewrite of it."""
    response: EngineResponse
    coach_reply: str | None = None

    @property
    def text(self) -> str:
        return self.coach_reply or self.response.message


class DesignSession:
    """One teacher's design session."""

    def __init__(
        self,
        engine: ConversationEngine,
        store: ConversationStore | None = None,
        context: ProjectContext | None = None,
        coach: ConversationManager | None = None,
        session_id: str | None = None,
    ):
        """
        Args:
            engine: Stage engine (may be shared across sessions).
            store: Existing store to resume. A fresh one is created when None.
            context: Initial context for a fresh store.
            coach: Optional coaching conversation for reply rewriting.
            session_id: Identifier used in saved files.
        """
        self.engine = engine
        self.store = store if store is not None else engine.create_store(context)
        self.coach = coach
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.transcript: list[dict[str, str]] = []
        self.last_response: EngineResponse | None = None
        self._refining = False
        self._lock = threading.Lock()
        self.log = LoggerAdapter(logger, session_id=self.session_id)

    @classmethod
    def create(
        cls,
        config: AppConfig,
        context: ProjectContext | None = None,
        narrative: NarrativeGenerator | None = None,
        coach_log_path: str | None = None,
    ) -> "DesignSession":
        """Build engine and (when enabled in config) the coaching client."""
        engine = ConversationEngine.from_config(config, narrative=narrative)
        return cls(engine, context=context, coach=build_coach(config, coach_log_path))

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ConversationState:
        return self.store.get_state()

    def opening_prompt(self) -> str:
        state = self.state
        return self.engine.get_stage_prompt(state.current_stage_id, state.context)

    def submit(self, text: str, source: InputSource | str | None = None) -> SessionTurn:
        """
        Run one teacher input through the engine.

        Input typed right after a refine request counts as a refinement
        unless a source is given explicitly.
        """
        with self._lock:
            if source is None:
                source = InputSource.REFINEMENT if self._refining else InputSource.TYPED
            self._record("user", text)
            response = self.engine.process_input(self.store, text, source)
            self._refining = False
            return self._finish(text, response)

    def choose_suggestion(self, index: int) -> SessionTurn:
        """
        Act on one of the options offered by the last response.

        While an input is awaiting confirmation the two options mean
        confirm and refine. Otherwise the option text is submitted as input.

        Raises:
            IndexError: If no such option was offered.
        """
        last = self.last_response
        if last is None or not 0 <= index < len(last.suggestions):
            raise IndexError(f"No suggestion number {index + 1} to choose")

        awaiting = (
            last.success
            and not last.stage_complete
            and self.state.pending_confirmation is not None
        )
        if awaiting and index == 0:
            return self.confirm()
        if awaiting and index == 1:
            return self.refine()

        source = InputSource.REFINEMENT if self._refining else InputSource.SUGGESTION
        return self.submit(last.suggestions[index], source=source)

    def confirm(self) -> SessionTurn:
        with self._lock:
            pending = self.state.pending_confirmation
            response = self.engine.confirm(self.store)
            return self._finish(pending.pending_value if pending else "", response)

    def refine(self) -> SessionTurn:
        with self._lock:
            pending = self.state.pending_confirmation
            response = self.engine.refine(self.store)
            self._refining = True
            return self._finish(pending.pending_value if pending else "", response)

    def goto(self, stage_id: StageId | str) -> ConversationState:
        """Operator jump; see ConversationEngine.navigate_to_stage."""
        with self._lock:
            self._refining = False
            return self.engine.navigate_to_stage(self.store, stage_id)

    def summary(self) -> str:
        return summarize_state(self.state)

    def status(self) -> str:
        return compute_status(self.state, self.engine.registry)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "saved_at": datetime.now().isoformat(),
            "state": self.state.to_dict(),
            "transcript": list(self.transcript),
        }

    def save(self, path: str) -> None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        self.log.info(f"Saved to {path}")

    @classmethod
    def load(
        cls,
        path: str,
        engine: ConversationEngine,
        coach: ConversationManager | None = None,
    ) -> "DesignSession":
        """
        Resume a saved session.

        Raises:
            FileNotFoundError: If path does not exist.
            UnknownStageError / StateInvariantError: If the saved state does
                not fit the engine's registry.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        state = ConversationState.from_dict(data.get("state", {}))
        store = ConversationStore(state, registry=engine.registry)
        session = cls(engine, store=store, coach=coach, session_id=data.get("session_id"))
        session.transcript = list(data.get("transcript", []))
        return session

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _finish(self, teacher_input: str, response: EngineResponse) -> SessionTurn:
        self.last_response = response
        coach_reply = self._coach_reply(teacher_input, response)
        self._record("assistant", coach_reply or response.message)
        return SessionTurn(response=response, coach_reply=coach_reply)

    def _coach_reply(self, teacher_input: str, response: EngineResponse) -> str | None:
        if self.coach is None:
            return None

        prompt = build_coaching_prompt(teacher_input, response)
        try:
            reply = self.coach.ask(prompt).strip()
        except OpenAIError as e:
            # State is already committed; fall back to the engine's own text
            self.log.warning(f"Coaching reply failed, using engine message: {e}")
            return None
        return reply or None

    def _record(self, role: str, content: str) -> None:
        self.transcript.append({
            "role": role,
            "content": content,
            "timestamp": datetime.now().isoformat(),
        })
