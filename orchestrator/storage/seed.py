"""Sample workflow shipped with the orchestrator."""

from ..core.logging import get_logger
from .repository import WorkflowRepository

logger = get_logger(__name__)

WEATHER_WORKFLOW_ID = "550e8400-e29b-41d4-a716-446655440000"
WEATHER_WORKFLOW_NAME = "Weather Check System"

_CITY_OPTIONS = [
    {"city": "Sydney", "lat": -33.8688, "lon": 151.2093},
    {"city": "Melbourne", "lat": -37.8136, "lon": 144.9631},
    {"city": "Brisbane", "lat": -27.4698, "lon": 153.0251},
    {"city": "Perth", "lat": -31.9505, "lon": 115.8605},
    {"city": "Adelaide", "lat": -34.9285, "lon": 138.6007},
]

WEATHER_WORKFLOW_NODES = [
    {
        "node_id": "start", "node_type": "start", "label": "Start",
        "description": "Begin weather check workflow", "x_pos": -160, "y_pos": 300,
        "node_metadata": {"hasHandles": {"source": True, "target": False}},
    },
    {
        "node_id": "form", "node_type": "form", "label": "User Input",
        "description": "Process collected data - name, email, location", "x_pos": 152, "y_pos": 304,
        "node_metadata": {
            "hasHandles": {"source": True, "target": True},
            "inputFields": ["name", "email", "city"],
            "outputVariables": ["name", "email", "city"],
        },
    },
    {
        "node_id": "weather-api", "node_type": "integration", "label": "Weather API",
        "description": "Fetch current temperature for {{city}}", "x_pos": 460, "y_pos": 304,
        "node_metadata": {
            "hasHandles": {"source": True, "target": True},
            "inputVariables": ["city"],
            "apiEndpoint": (
                "https://api.open-meteo.com/v1/forecast"
                "?latitude={lat}&longitude={lon}&current_weather=true"
            ),
            "options": _CITY_OPTIONS,
            "outputVariables": ["temperature"],
        },
    },
    {
        "node_id": "condition", "node_type": "condition", "label": "Check Condition",
        "description": "Evaluate temperature threshold", "x_pos": 794, "y_pos": 304,
        "node_metadata": {
            "hasHandles": {"source": ["true", "false"], "target": True},
            "conditionExpression": "temperature {{operator}} {{threshold}}",
            "outputVariables": ["conditionMet"],
        },
    },
    {
        "node_id": "email", "node_type": "email", "label": "Send Alert",
        "description": "Email weather alert notification", "x_pos": 1096, "y_pos": 88,
        "node_metadata": {
            "hasHandles": {"source": True, "target": True},
            "inputVariables": ["name", "city", "temperature"],
            "subject": "Weather Alert",
            "emailTemplate": {
                "subject": "Weather Alert",
                "body": "Weather alert for {{city}}! Temperature is {{temperature}}°C!",
            },
            "outputVariables": ["emailSent"],
        },
    },
    {
        "node_id": "end", "node_type": "end", "label": "Complete",
        "description": "Workflow execution finished", "x_pos": 1360, "y_pos": 302,
        "node_metadata": {"hasHandles": {"source": False, "target": True}},
    },
]

WEATHER_WORKFLOW_EDGES = [
    {
        "edge_id": "e1", "source_id": "start", "target_id": "form", "source_handle": None,
        "label": "Initialize", "style": {"stroke": "#10b981", "strokeWidth": 3},
    },
    {
        "edge_id": "e2", "source_id": "form", "target_id": "weather-api", "source_handle": None,
        "label": "Submit Data", "style": {"stroke": "#3b82f6", "strokeWidth": 3},
    },
    {
        "edge_id": "e3", "source_id": "weather-api", "target_id": "condition", "source_handle": None,
        "label": "Temperature Data", "style": {"stroke": "#f97316", "strokeWidth": 3},
    },
    {
        "edge_id": "e4", "source_id": "condition", "target_id": "email", "source_handle": "true",
        "label": "✓ Condition Met", "style": {"stroke": "#10b981", "strokeWidth": 3},
        "label_style": {"fill": "#10b981", "fontWeight": "bold"},
    },
    {
        "edge_id": "e5", "source_id": "condition", "target_id": "end", "source_handle": "false",
        "label": "✗ No Alert Needed", "style": {"stroke": "#6b7280", "strokeWidth": 3},
        "label_style": {"fill": "#6b7280", "fontWeight": "bold"},
    },
    {
        "edge_id": "e6", "source_id": "email", "target_id": "end", "source_handle": None,
        "label": "Alert Sent", "style": {"stroke": "#ef4444", "strokeWidth": 2},
        "label_style": {"fill": "#ef4444", "fontWeight": "bold"},
    },
]


def seed_weather_workflow(repository: WorkflowRepository) -> str:
    """Insert the sample weather workflow unless it already exists."""
    if repository.workflow_exists(WEATHER_WORKFLOW_ID):
        logger.debug(f"Sample workflow {WEATHER_WORKFLOW_ID} already present")
        return WEATHER_WORKFLOW_ID

    return repository.create_workflow(
        name=WEATHER_WORKFLOW_NAME,
        description="Check the temperature of a city and email an alert when it crosses a threshold",
        nodes=WEATHER_WORKFLOW_NODES,
        edges=WEATHER_WORKFLOW_EDGES,
        workflow_id=WEATHER_WORKFLOW_ID,
    )
