import logging
import uuid
from collections import Counter
from typing import Optional

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types
from pydantic import ValidationError

from engine.recommendation import Advisor
from models.schemas import AdvisoryRequest, AdvisoryResponse, Recommendation
from .agent import DEFAULT_ADVISORY_MODEL, build_advisory_agent, build_task_prompt

logger = logging.getLogger(__name__)

USER_ID = "planner"


class AdvisoryError(Exception):
    """The advisory service produced no usable recommendation."""


def parse_advisory_response(text: Optional[str], request: AdvisoryRequest) -> Recommendation:
    """Validate untrusted advisory output against the response contract.

    Empty text, invalid JSON, schema mismatches and responses that leave out a
    requested room all raise AdvisoryError.
    """
    if not text or not text.strip():
        raise AdvisoryError("Advisory service returned an empty response.")
    try:
        response = AdvisoryResponse.model_validate_json(text)
    except ValidationError as e:
        raise AdvisoryError(f"Advisory response does not match the contract: {e}") from e

    # rooms may share a name, so every occurrence needs its own entry
    missing = Counter(room.room_name for room in request.rooms) - Counter(
        r.room_name for r in response.room_recommendations
    )
    if missing:
        raise AdvisoryError(f"Advisory response is missing rooms: {', '.join(sorted(missing.elements()))}")

    return Recommendation(**response.model_dump(), degraded=False)


class RemoteAdvisor(Advisor):
    """Advisor backed by a Gemini model through an ADK runner.

    A fresh session is created per call, so re-invocation is idempotent.
    """

    def __init__(
        self,
        model: str = DEFAULT_ADVISORY_MODEL,
        app_name: str = "solar_advisory",
        session_service: Optional[InMemorySessionService] = None,
    ):
        self.app_name = app_name
        self.session_service = session_service or InMemorySessionService()
        self.runner = Runner(
            agent=build_advisory_agent(model),
            app_name=app_name,
            session_service=self.session_service,
        )

    async def advise(self, request: AdvisoryRequest) -> Recommendation:
        try:
            text = await self._generate(request)
        except AdvisoryError:
            raise
        except Exception as e:
            raise AdvisoryError(f"Advisory call failed: {e}") from e
        return parse_advisory_response(text, request)

    async def _generate(self, request: AdvisoryRequest) -> Optional[str]:
        session_id = str(uuid.uuid4())
        await self.session_service.create_session(
            app_name=self.app_name,
            user_id=USER_ID,
            session_id=session_id,
        )
        content = types.Content(role="user", parts=[types.Part(text=build_task_prompt(request))])

        final_response_text = None
        async for event in self.runner.run_async(
            user_id=USER_ID,
            session_id=session_id,
            new_message=content,
        ):
            if event.is_final_response():
                if getattr(event, "content", None) and event.content.parts:
                    final_response_text = event.content.parts[0].text
                elif getattr(event, "actions", None) and event.actions.escalate:
                    raise AdvisoryError(f"Agent escalated: {event.error_message or 'No specific message.'}")
        logger.info(f"<<< Advisory response received ({len(final_response_text or '')} chars)")
        return final_response_text
