import base64

import pytest
from fastapi.testclient import TestClient

from main import create_app
from models.session_models import ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_USER
from services.prompts import EMBEDDED_CSV_NOTICE
from utils.settings import Settings

SAMPLE_CSV = "name,department,salary\nAda,Engineering,120\nGrace,Research,130\n"


@pytest.fixture
def settings(tmp_path):
    return Settings(default_model="text-model", multimodal_model="vision-model", public_dir=tmp_path / "public")


def test_analyze_csv_attaches_records(client, fake_client, store):
    fake_client.queue("Two people, average salary 125.")

    response = client.post("/analyze-csv", json={"csv": SAMPLE_CSV, "prompt": "Average salary?"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "CSV analysis complete"
    assert body["response"] == "Two people, average salary 125."
    state = store._sessions[body["sessionId"]]
    assert state.analyzed_data == [
        {"name": "Ada", "department": "Engineering", "salary": "120"},
        {"name": "Grace", "department": "Research", "salary": "130"},
    ]
    call = fake_client.calls[0]
    assert call["model"] == "text-model"
    assert call["messages"][0]["content"].startswith("You are an expert CSV data analyst")
    assert call["messages"][1]["content"].startswith("Average salary?\n\nCSV Data (JSON format):\n```json\n")
    assert '"department": "Engineering"' in call["messages"][1]["content"]


def test_analyze_csv_uses_default_prompt(client, fake_client):
    client.post("/analyze-csv", json={"csv": SAMPLE_CSV})

    assert fake_client.calls[0]["messages"][1]["content"].startswith("Analyze the following CSV data.")


def test_analyze_csv_replaces_a_previous_image(client, fake_client, store, png_b64):
    session_id = client.post("/analyze-image", json={"image": png_b64}).json()["sessionId"]
    assert store._sessions[session_id].analyzed_image == png_b64

    client.post("/analyze-csv", json={"csv": SAMPLE_CSV, "sessionId": session_id})

    state = store._sessions[session_id]
    assert state.analyzed_image is None
    assert len(state.analyzed_data) == 2


def test_analyze_csv_reports_directive(client, fake_client):
    fake_client.queue("CSV_REQUEST: only rows from Research")

    body = client.post("/analyze-csv", json={"csv": SAMPLE_CSV}).json()

    assert body["action"] == "generate_file"
    assert body["fileType"] == "csv"
    assert body["generationPrompt"] == "only rows from Research"


def test_analyze_csv_requires_content(client, fake_client):
    response = client.post("/analyze-csv", json={"prompt": "anything"})

    assert response.status_code == 400
    assert response.json() == {"error": "No CSV content provided."}
    assert fake_client.calls == []


def test_malformed_csv_is_rejected_without_calling_the_model(client, fake_client):
    response = client.post("/analyze-csv", json={"csv": "a,b\n1,2,3\n"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Failed to parse CSV content")
    assert fake_client.calls == []


def test_analyze_image_uses_multimodal_model(client, fake_client, store, png_b64):
    fake_client.queue("A small red square.")

    body = client.post(
        "/analyze-image", json={"image": f"data:image/png;base64,{png_b64}", "prompt": "What colour?"}
    ).json()

    assert body["message"] == "Image analysis complete"
    assert body["response"] == "A small red square."
    assert body["csvContent"] is None
    call = fake_client.calls[0]
    assert call["model"] == "vision-model"
    assert call["messages"][1] == {"role": ROLE_USER, "content": "What colour?", "images": [png_b64]}
    state = store._sessions[body["sessionId"]]
    assert state.analyzed_image == png_b64
    assert state.analyzed_data is None


def test_analyze_image_checks_image_request_first(client, fake_client, png_b64):
    fake_client.queue("IMAGE_REQUEST: the same square in blue")

    body = client.post("/analyze-image", json={"image": png_b64}).json()

    assert body["fileType"] == "image"
    assert body["generationPrompt"] == "the same square in blue"


def test_analyze_image_converts_embedded_json_to_csv(client, fake_client, store, png_b64):
    fake_client.queue('CSV_REQUEST: list objects\n```json\n[{"object": "square", "colour": "red"}]\n```')

    body = client.post("/analyze-image", json={"image": png_b64}).json()

    assert body["fileType"] == "csv"
    assert body["csvContent"] == "object,colour\nsquare,red\n"
    assert body["response"] == "CSV_REQUEST: list objects"
    history = store._sessions[body["sessionId"]].history
    assert history[-1].role == ROLE_ASSISTANT
    assert history[-1].content == "CSV_REQUEST: list objects"


def test_analyze_image_reports_unconvertible_json(client, fake_client, png_b64):
    fake_client.queue("CSV_REQUEST: list objects\n```json\n[1, 2, 3]\n```")

    body = client.post("/analyze-image", json={"image": png_b64}).json()

    assert body["response"].startswith("The model provided JSON, but it could not be converted to CSV")
    assert body["fileType"] is None
    assert "action" not in body
    assert body["csvContent"] is None


def test_notice_is_used_when_only_json_remains():
    from controllers.analysis_controller import _embedded_csv
    from models.directive import Directive, DirectiveKind

    block = '```json\n[{"a": "1"}]\n```'
    reply, directive, csv_content = _embedded_csv(block, Directive(DirectiveKind.GENERATE_CSV, "x"))

    assert reply == EMBEDDED_CSV_NOTICE
    assert directive.kind is DirectiveKind.GENERATE_CSV
    assert csv_content == "a\n1\n"


def test_invalid_image_is_rejected(client, fake_client):
    not_an_image = base64.b64encode(b"definitely not an image").decode("ascii")

    response = client.post("/analyze-image", json={"image": not_an_image})

    assert response.status_code == 400
    assert fake_client.calls == []


def test_analyze_pdf_extracts_text(client, fake_client, store, pdf_b64):
    fake_client.queue("Revenue went up.")

    body = client.post("/analyze-pdf", json={"pdf": pdf_b64}).json()

    assert body["message"] == "PDF analysis complete"
    assert body["response"] == "Revenue went up."
    state = store._sessions[body["sessionId"]]
    assert "Quarterly revenue grew 12 percent" in state.analyzed_data
    user_content = fake_client.calls[0]["messages"][1]["content"]
    assert user_content.startswith("Summarize the content of the PDF.\n\nDocument Text:\n```\n")
    assert "Quarterly revenue grew 12 percent" in user_content


def test_corrupt_pdf_is_rejected(client, fake_client):
    garbage = base64.b64encode(b"this is not a pdf at all").decode("ascii")

    response = client.post("/analyze-pdf", json={"pdf": garbage})

    assert response.status_code == 400
    assert fake_client.calls == []


def test_failed_analysis_keeps_history_clean(client, fake_client, store):
    fake_client.fail_with("model crashed")

    response = client.post("/analyze-csv", json={"csv": SAMPLE_CSV})

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Failed to analyze CSV"
    assert body["error"] == "model crashed"
    history = store._sessions[body["sessionId"]].history
    assert [m.role for m in history] == [ROLE_SYSTEM]


def test_task_switch_keeps_first_system_prompt_by_default(client, fake_client, store):
    session_id = client.post("/chat", json={"question": "hi"}).json()["sessionId"]

    client.post("/analyze-csv", json={"csv": SAMPLE_CSV, "sessionId": session_id})

    roles = [m.role for m in store._sessions[session_id].history]
    assert roles.count(ROLE_SYSTEM) == 1


def test_task_switch_reprimes_when_enabled(tmp_path, fake_client, store, fact_provider):
    settings = Settings(reprime_on_task_switch=True, public_dir=tmp_path / "public")
    app = create_app(settings, inference_client=fake_client, session_store=store, fact_provider=fact_provider)

    with TestClient(app) as client:
        session_id = client.post("/chat", json={"question": "hi"}).json()["sessionId"]
        client.post("/analyze-csv", json={"csv": SAMPLE_CSV, "sessionId": session_id})
        client.post("/analyze-csv", json={"csv": SAMPLE_CSV, "sessionId": session_id})

    history = store._sessions[session_id].history
    system_messages = [m.content for m in history if m.role == ROLE_SYSTEM]
    assert len(system_messages) == 2
    assert system_messages[1].startswith("You are an expert CSV data analyst")
