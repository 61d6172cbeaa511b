"""CLI adapter — runs one schedule tick and prints the result as JSON.

Meant to be invoked by cron or any other periodic trigger::

    agent-schedule agent_cycle
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys

from agent_orchestrator import create_core
from agent_orchestrator.config import load_config
from agent_orchestrator.engine.models import ScheduleType
from agent_orchestrator.errors import UnknownScheduleType


async def run_schedule(schedule_type: str) -> dict:
    core = create_core()
    try:
        result = await core.dispatcher.handle_schedule(schedule_type)
    finally:
        await core.aclose()
    return result.model_dump(mode="json") if hasattr(result, "model_dump") else {"result": result}


def main() -> None:
    choices = ", ".join(s.value for s in ScheduleType)
    if len(sys.argv) != 2:
        print(f"Usage: agent-schedule <{choices}>", file=sys.stderr)
        sys.exit(1)

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    try:
        payload = asyncio.run(run_schedule(sys.argv[1]))
    except UnknownScheduleType as exc:
        print(f"{exc}. Expected one of: {choices}", file=sys.stderr)
        sys.exit(2)

    print(json.dumps(payload, default=str), flush=True)


if __name__ == "__main__":
    main()
