"""Per-turn control loop.

A turn moves through these states:

    START -> ROUTED -> DIRECT                       (Ask rule, no LLM call)
    START -> [ROUTED] -> AUGMENTED | CHAT -> TOOL_LOOP* -> COMMITTED
                                                        -> FALLBACK (LLM failed, rule has or_else)
                                                        -> FAILED   (error propagated)

The session is written back to the store on every exit path. Tool-round
messages are held by the turn and only reach the session log when a reply
is committed, so a cancelled or failed turn leaves just the user message.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Sequence, TypeVar

from colloquy.agent.extraction import (
    build_extraction_messages,
    merge_collected,
    parse_extraction,
    uncollected_fields,
)
from colloquy.conditions import USER_INPUT_KEY, find_missing
from colloquy.errors import (
    ConditionError,
    LLMError,
    TurnCancelledError,
    TurnTimeoutError,
    ToolLoopExhaustedError,
)
from colloquy.fields import FieldSpec
from colloquy.llm.chat_model import ChatModel
from colloquy.llm.settings import ModelSettings
from colloquy.rules import Ask, AskAI, Collect, Rule
from colloquy.sessions.session import Session
from colloquy.sessions.store import SessionStore
from colloquy.sessions.types import ROLE_ASSISTANT, Message, ToolCall
from colloquy.tools.base import Tool
from colloquy.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

COLLECT_HEADER = "Ask the user for the following missing information:"


class TurnState(str, Enum):
    START = "start"
    ROUTED = "routed"
    DIRECT = "direct"
    AUGMENTED = "augmented"
    CHAT = "chat"
    TOOL_LOOP = "tool_loop"
    COMMITTED = "committed"
    FALLBACK = "fallback"
    FAILED = "failed"


@dataclass
class ChatOptions:
    """Per-turn options for Agent.chat().

    Attributes:
        session_id: Overrides the session id passed positionally
        extra_tools: Tools available for this turn only
        model_settings: Merged over the agent's settings for this turn
        data: Extra per-turn data visible to conditions
        cancel_event: Setting this event cancels the turn
        timeout: Whole-turn deadline in seconds
    """

    session_id: str | None = None
    extra_tools: list[Tool] = field(default_factory=list)
    model_settings: ModelSettings | None = None
    data: dict[str, Any] = field(default_factory=dict)
    cancel_event: asyncio.Event | None = None
    timeout: float | None = None


@dataclass
class TurnResult:
    """Outcome of one turn."""

    message: Message
    session: Session
    state: TurnState
    matched_rule: str | None = None
    structured_output: Any = None
    llm_calls: int = 0


class _TurnContext:
    """Mutable bookkeeping for a single turn."""

    def __init__(
        self, session_id: str, options: ChatOptions, log: logging.Logger = logger
    ):
        loop = asyncio.get_running_loop()
        self.log = log
        self.session_id = session_id
        self.cancel_event = options.cancel_event
        self.timeout = options.timeout
        self.deadline = None if options.timeout is None else loop.time() + options.timeout
        self.state = TurnState.START
        self.llm_calls = 0
        self.matched_rule: Rule | None = None

    def move_to(self, state: TurnState) -> None:
        self.log.debug(f"Session {self.session_id}: {self.state.value} -> {state.value}")
        self.state = state

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return self.deadline - asyncio.get_running_loop().time()

    def check(self) -> None:
        """Raise if the turn was cancelled or its deadline passed."""
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise TurnCancelledError(f"Turn for session {self.session_id} was cancelled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise TurnTimeoutError(
                f"Turn for session {self.session_id} exceeded its {self.timeout}s deadline"
            )


class TurnOrchestrator:
    """Runs turns for one agent.

    Holds the agent's frozen configuration: rules, tools, model, settings
    and limits. Callers serialize turns per session id.

    Logging goes to a child of this module's logger named after the agent,
    so debug logging can be enabled for one agent without touching others.
    """

    def __init__(
        self,
        chat_model: ChatModel,
        store: SessionStore,
        model: str,
        instructions: str,
        rules: Sequence[Rule] = (),
        tools: ToolRegistry | None = None,
        model_settings: ModelSettings | None = None,
        max_tool_rounds: int = 4,
        tool_timeout: float = 30.0,
        name: str = "",
        fields: Sequence[FieldSpec] = (),
        extract_fields: bool = False,
        debug_logging: bool = False,
    ):
        self.chat_model = chat_model
        self.store = store
        self.model = model
        self.instructions = instructions
        self.rules = tuple(rules)
        self.tools = tools or ToolRegistry()
        self.model_settings = model_settings or ModelSettings()
        self.max_tool_rounds = max_tool_rounds
        self.tool_timeout = tool_timeout
        self.fields = tuple(fields)
        self.extract_fields = extract_fields
        self.logger = logger.getChild(name) if name else logger
        if debug_logging:
            self.logger.setLevel(logging.DEBUG)
        elif name:
            self.logger.setLevel(logging.NOTSET)
        self._model_validated = False
        self._validate_lock = asyncio.Lock()

    async def run(
        self, session_id: str, utterance: str, options: ChatOptions | None = None
    ) -> TurnResult:
        """Run one turn.

        Args:
            session_id: Session to load or create
            utterance: The user's message (may be empty)
            options: Per-turn options

        Returns:
            TurnResult with the committed assistant message

        Raises:
            UnsupportedModelError: If the model fails pre-flight validation
            LLMError: If the LLM fails and no fallback applies
            ToolLoopExhaustedError: If the tool budget runs out without text
            TurnCancelledError: If the turn is cancelled or times out
        """
        options = options or ChatOptions()
        ctx = _TurnContext(session_id, options, self.logger)

        session = await self.store.get_or_create(session_id)
        try:
            session.add_message(Message.user(utterance))
            result = await self._run_turn(ctx, session, utterance, options)
        except Exception as e:
            ctx.move_to(TurnState.FAILED)
            self.logger.error(
                f"Turn for session {session_id} failed: {type(e).__name__}: {e}"
            )
            raise
        finally:
            await self.store.put(session)

        self.logger.info(
            f"Turn for session {session_id} finished: state={result.state.value}, "
            f"rule={result.matched_rule}, llm_calls={result.llm_calls}"
        )
        return result

    async def _run_turn(
        self,
        ctx: _TurnContext,
        session: Session,
        utterance: str,
        options: ChatOptions,
    ) -> TurnResult:
        if self.extract_fields and self.fields:
            await self._extract_fields(ctx, session)

        data: dict[str, Any] = {
            USER_INPUT_KEY: utterance,
            "messageCount": session.message_count(),
            "sessionId": session.id,
        }
        data.update(options.data)

        rule = self.match_rule(session, data)
        ctx.matched_rule = rule
        transient: list[Message] = []

        if rule is not None:
            ctx.move_to(TurnState.ROUTED)
            action = rule.action
            if isinstance(action, Ask):
                ctx.move_to(TurnState.DIRECT)
                message = session.add_message(Message.assistant(action.text))
                return self._result(ctx, session, message)
            if isinstance(action, AskAI):
                transient.append(Message.system(action.instruction))
            elif isinstance(action, Collect):
                instruction = collect_instruction(session, action)
                if instruction is not None:
                    transient.append(Message.system(instruction))

        ctx.move_to(TurnState.AUGMENTED if transient else TurnState.CHAT)

        settings = self.model_settings.merge(options.model_settings)
        tools = (
            self.tools.merged_with(options.extra_tools)
            if options.extra_tools
            else self.tools
        )

        # UnsupportedModelError is not an LLMError, so it bypasses the fallback
        try:
            await self._ensure_model(ctx)
            message = await self._llm_loop(ctx, session, transient, settings, tools)
        except LLMError as e:
            if rule is None or rule.fallback is None:
                raise
            self.logger.warning(
                f"LLM failed for rule {rule.name} in session {session.id}, "
                f"using fallback: {e}"
            )
            ctx.move_to(TurnState.FALLBACK)
            message = session.add_message(Message.assistant(rule.fallback))
            return self._result(ctx, session, message)

        ctx.move_to(TurnState.COMMITTED)
        return self._result(ctx, session, message)

    def match_rule(self, session: Session, data: dict[str, Any]) -> Rule | None:
        """Return the first rule whose condition holds.

        A condition that raises is logged and treated as a non-match.
        """
        for rule in self.rules:
            try:
                matched = rule.condition.evaluate(session, data)
            except Exception as e:
                self.logger.debug(str(ConditionError(rule.condition.name, e)))
                continue
            if matched:
                self.logger.debug(f"Rule {rule.name} matched in session {session.id}")
                return rule
        return None

    async def _ensure_model(self, ctx: _TurnContext) -> None:
        """Validate the model on first use.

        Raises:
            UnsupportedModelError: If the ChatModel rejects the model
            LLMError: If validation could not reach the provider; the next
                turn tries again
        """
        if self._model_validated:
            return
        async with self._validate_lock:
            if self._model_validated:
                return
            await self._await_io(ctx, self.chat_model.validate_model(self.model))
            self._model_validated = True
            self.logger.info(f"Model {self.model} validated")

    async def _extract_fields(self, ctx: _TurnContext, session: Session) -> None:
        """Ask the LLM for declared field values and merge them into the session.

        Extraction is best effort: an LLM failure or an unparseable reply
        leaves the collected values unchanged.
        """
        missing = uncollected_fields(session, self.fields)
        if not missing:
            return

        messages = build_extraction_messages(session, missing)
        try:
            await self._ensure_model(ctx)
            reply = await self._await_io(
                ctx, self.chat_model.generate(messages, self.model, self.model_settings)
            )
        except LLMError as e:
            self.logger.warning(f"Field extraction failed in session {session.id}: {e}")
            return
        ctx.llm_calls += 1

        values = parse_extraction(reply.content, missing)
        if values:
            merge_collected(session, values)
            self.logger.info(
                f"Collected fields {sorted(values)} in session {session.id}"
            )

    async def _llm_loop(
        self,
        ctx: _TurnContext,
        session: Session,
        transient: list[Message],
        settings: ModelSettings,
        tools: ToolRegistry,
    ) -> Message:
        schemas = tools.schemas() or None
        rounds = 0
        # Tool-round messages for this turn, written to the session on commit
        pending: list[Message] = []

        while True:
            prompt = self._build_prompt(session, pending, transient)
            reply = await self._await_io(
                ctx, self.chat_model.generate(prompt, self.model, settings, schemas)
            )
            ctx.llm_calls += 1
            if reply.role != ROLE_ASSISTANT:
                raise LLMError(f"ChatModel returned a {reply.role} message")

            if not reply.has_tool_calls:
                return self._commit(session, pending, reply)

            if rounds >= self.max_tool_rounds:
                if reply.content.strip():
                    self.logger.warning(
                        f"Tool budget of {self.max_tool_rounds} rounds exhausted in "
                        f"session {session.id}, committing text reply"
                    )
                    return self._commit(
                        session, pending, Message.assistant(reply.content)
                    )
                raise ToolLoopExhaustedError(rounds, reply.content)

            ctx.move_to(TurnState.TOOL_LOOP)
            pending.append(reply)
            for call in reply.tool_calls:
                content = await self._invoke_tool(ctx, tools, call)
                pending.append(Message.tool(call.id, call.function.name, content))
            rounds += 1

    def _commit(
        self, session: Session, pending: list[Message], reply: Message
    ) -> Message:
        for message in pending:
            session.add_message(message)
        return session.add_message(reply)

    def _build_prompt(
        self, session: Session, pending: list[Message], transient: list[Message]
    ) -> list[Message]:
        prompt = []
        if self.instructions:
            prompt.append(Message.system(self.instructions))
        prompt.extend(session.messages())
        prompt.extend(pending)
        prompt.extend(transient)
        return prompt

    async def _invoke_tool(
        self, ctx: _TurnContext, tools: ToolRegistry, call: ToolCall
    ) -> str:
        name = call.function.name
        tool = tools.get(name)
        if tool is None:
            self.logger.warning(f"LLM requested unknown tool {name}")
            return json.dumps({"error": f"unknown tool {name}"})

        try:
            call.function.parsed_arguments()
        except ValueError as e:
            self.logger.warning(f"Invalid arguments for tool {name}: {e}")
            return json.dumps({"error": f"invalid arguments for {name}: {e}"})

        timeout = self.tool_timeout
        remaining = ctx.remaining()
        deadline_bound = remaining is not None and remaining < timeout
        if deadline_bound:
            timeout = max(remaining, 0.0)

        try:
            result = await self._await_io(
                ctx, asyncio.wait_for(tool.invoke(call.function.arguments), timeout)
            )
        except TurnCancelledError:
            raise
        except asyncio.TimeoutError:
            if deadline_bound:
                raise TurnTimeoutError(
                    f"Turn for session {ctx.session_id} exceeded its "
                    f"{ctx.timeout}s deadline while running tool {name}"
                )
            self.logger.warning(f"Tool {name} timed out after {timeout:g}s")
            return json.dumps({"error": f"tool {name} timed out after {timeout:g}s"})
        except Exception as e:
            self.logger.warning(f"Tool {name} failed: {e}")
            return json.dumps({"error": str(e)})

        self.logger.debug(f"Tool {name} returned {len(result)} bytes")
        return result

    async def _await_io(self, ctx: _TurnContext, awaitable: Awaitable[T]) -> T:
        """Await I/O while honoring the cancel event and the turn deadline.

        Raises:
            TurnCancelledError: If the cancel event fires first
            TurnTimeoutError: If the deadline passes first
        """
        try:
            ctx.check()
        except TurnCancelledError:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise
        task = asyncio.ensure_future(awaitable)
        waiters: set[asyncio.Future[Any]] = {task}
        cancel_waiter = None
        if ctx.cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(ctx.cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=ctx.remaining(), return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        ctx.check()
        # Woken without the task finishing: the deadline is (just) past
        raise TurnTimeoutError(
            f"Turn for session {ctx.session_id} exceeded its {ctx.timeout}s deadline"
        )

    def _result(self, ctx: _TurnContext, session: Session, message: Message) -> TurnResult:
        return TurnResult(
            message=message,
            session=session,
            state=ctx.state,
            matched_rule=ctx.matched_rule.name if ctx.matched_rule else None,
            llm_calls=ctx.llm_calls,
        )


def collect_instruction(session: Session, action: Collect) -> str | None:
    """Build the transient instruction asking for missing fields.

    Returns:
        The instruction, or None when every field is already present
    """
    specs = action.field_specs()
    missing = set(find_missing(session, [spec.name for spec in specs]))

    lines = []
    for spec in specs:
        if spec.name not in missing:
            continue
        suffix = "" if spec.required else " (optional)"
        lines.append(f"- {spec.prompt}{suffix}")

    if not lines:
        return None
    return COLLECT_HEADER + "\n" + "\n".join(lines)
