"""
scoreboard/commands.py - Admin command models and dispatch.

Every inbound frame is ``{"type": <command>, ...fields}``. The fields are
validated into a pydantic model before the session is touched, so a bad
command never leaves the match half-updated.
"""

import logging
from typing import Annotated, Any, Awaitable, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from ringside.errors import ValidationError
from ringside.match import ScoreAction, Side

from .db import MAX_MATCH_ID
from .session import MatchSession

logger = logging.getLogger(__name__)


# ======================================================================
# Command Models
# ======================================================================


class Command(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


Name = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]
OptionalText = Annotated[str, StringConstraints(strict=True, strip_whitespace=True)]


class StartMatchCommand(Command):
    name_a: Name = Field(alias="nameA")
    name_b: OptionalText | None = Field(default="", alias="nameB")  # empty or "-" for a bye
    phase: OptionalText | None = None


class AdjustTimeCommand(Command):
    seconds: StrictInt


class UpdateScoreCommand(Command):
    player: Literal[1, 2]
    action: Literal["add", "remove"]


class DeleteMatchCommand(Command):
    id: StrictInt = Field(ge=1, le=MAX_MATCH_ID)


class EmptyCommand(Command):
    pass


# ======================================================================
# Handlers
# ======================================================================


async def _start_match(session: MatchSession, cmd: StartMatchCommand) -> None:
    await session.start_match(cmd.name_a, cmd.name_b or "", cmd.phase or None)


async def _end_match(session: MatchSession, cmd: EmptyCommand) -> None:
    await session.end_match()


async def _pause_match(session: MatchSession, cmd: EmptyCommand) -> None:
    await session.pause_match()


async def _resume_match(session: MatchSession, cmd: EmptyCommand) -> None:
    await session.resume_match()


async def _adjust_time(session: MatchSession, cmd: AdjustTimeCommand) -> None:
    await session.adjust_time(cmd.seconds)


async def _next_round(session: MatchSession, cmd: EmptyCommand) -> None:
    await session.next_round()


async def _update_score(session: MatchSession, cmd: UpdateScoreCommand) -> None:
    await session.update_score(Side(cmd.player), ScoreAction(cmd.action))


async def _toggle_view(session: MatchSession, cmd: EmptyCommand) -> None:
    await session.toggle_view()


async def _delete_match(session: MatchSession, cmd: DeleteMatchCommand) -> None:
    await session.delete_match(cmd.id)


Handler = Callable[[MatchSession, Any], Awaitable[None]]

COMMANDS: dict[str, tuple[type[Command], Handler]] = {
    "start-match": (StartMatchCommand, _start_match),
    "end-match": (EmptyCommand, _end_match),
    "pause-match": (EmptyCommand, _pause_match),
    "resume-match": (EmptyCommand, _resume_match),
    "adjust-time": (AdjustTimeCommand, _adjust_time),
    "next-round": (EmptyCommand, _next_round),
    "update-score": (UpdateScoreCommand, _update_score),
    "toggle-view": (EmptyCommand, _toggle_view),
    "delete-match": (DeleteMatchCommand, _delete_match),
}


def parse_command(message: Any) -> tuple[str, Command]:
    """Validate a raw frame. Raises ValidationError on anything malformed."""
    if not isinstance(message, dict):
        raise ValidationError("Command must be a JSON object")

    command_type = message.get("type")
    if command_type not in COMMANDS:
        raise ValidationError(f"Unknown command: {command_type!r}")

    model, _ = COMMANDS[command_type]
    fields = {k: v for k, v in message.items() if k != "type"}
    try:
        return command_type, model.model_validate(fields)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or command_type}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {command_type}: {details}") from e


async def dispatch(session: MatchSession, message: Any) -> str:
    """Validate and run one admin command. Returns the command type."""
    command_type, cmd = parse_command(message)
    _, handler = COMMANDS[command_type]
    logger.debug(f"Command {command_type}")
    await handler(session, cmd)
    return command_type
