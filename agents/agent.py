import json

from google.adk.agents import Agent

from engine.helper import format_currency, format_percent, format_roi
from models.schemas import AdvisoryRequest, AdvisoryResponse
from . import prompt

DEFAULT_ADVISORY_MODEL = "gemini-2.5-flash"


def build_advisory_agent(model: str = DEFAULT_ADVISORY_MODEL) -> Agent:
    """Single LLM agent whose reply is constrained to the AdvisoryResponse schema."""
    return Agent(
        name="solar_advisory_agent",
        description="Recommend per-room grid/solar/hybrid strategies from precomputed metrics.",
        model=model,
        instruction=prompt.ADVISORY_INSTRUCTIONS,
        output_schema=AdvisoryResponse,
        disallow_transfer_to_parent=True,
        disallow_transfer_to_peers=True,
    )


def build_task_prompt(request: AdvisoryRequest) -> str:
    totals = request.building_totals
    total_cost = totals.total_cost_year_grid
    room_analysis = [
        {
            "roomName": room.room_name,
            "yearlyCost_INR": f"{room.yearly_cost:.0f}",
            "requiredCapacity_KW": f"{room.required_capacity:.2f}",
            "costShare": format_percent(room.yearly_cost / total_cost if total_cost > 0 else 0),
            "roiYears": format_roi(room.roi_years),
            "suggestedAction": room.suggested_action,
        }
        for room in request.rooms
    ]
    return prompt.TASK_PROMPT.format(
        total_cost=format_currency(total_cost),
        total_capacity_kw=totals.total_required_capacity_kw,
        room_analysis=json.dumps(room_analysis, indent=2),
    )
