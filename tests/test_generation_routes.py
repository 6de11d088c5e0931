SAMPLE_CSV = "name,team\nAda,Core\nLin,Infra\n"


def test_generate_csv_converts_json_reply(client, fake_client):
    fake_client.queue('```json\n[{"fruit": "apple", "price": 1.5}, {"fruit": "kiwi, gold", "price": 2}]\n```')

    response = client.post("/generate-csv", json={"prompt": "two fruits with prices"})

    assert response.status_code == 200
    assert response.json() == {
        "message": "CSV content generated successfully",
        "csvContent": 'fruit,price\napple,1.5\n"kiwi, gold",2\n',
        "fileName": "generated_data.csv",
    }
    call = fake_client.calls[0]
    assert call["op"] == "complete"
    assert call["prompt"].startswith("two fruits with prices")
    assert "Output the result as a JSON array of objects" in call["prompt"]


def test_generate_csv_embeds_analyzed_records(client, fake_client):
    session_id = client.post("/analyze-csv", json={"csv": SAMPLE_CSV}).json()["sessionId"]
    fake_client.queue('```json\n[{"name": "Ada"}]\n```')

    body = client.post("/generate-csv", json={"prompt": "only Core", "sessionId": session_id}).json()

    assert body["csvContent"] == "name\nAda\n"
    prompt = fake_client.calls[-1]["prompt"]
    assert prompt.startswith("Based on the following data, please generate a CSV: only Core")
    assert '"team": "Infra"' in prompt


def test_generate_csv_embeds_analyzed_document_text(client, fake_client, pdf_b64):
    session_id = client.post("/analyze-pdf", json={"pdf": pdf_b64}).json()["sessionId"]

    client.post("/generate-csv", json={"prompt": "key figures", "sessionId": session_id})

    prompt = fake_client.calls[-1]["prompt"]
    assert prompt.startswith("Based on the following document text, please generate a CSV: key figures")
    assert "Quarterly revenue grew 12 percent" in prompt


def test_generate_csv_falls_back_to_raw_text(client, fake_client):
    fake_client.queue("a,b\n1,2\n")

    body = client.post("/generate-csv", json={"prompt": "anything"}).json()

    assert body["csvContent"] == "a,b\n1,2\n"
    assert body["fileName"] == "generated_data.csv"


def test_empty_csv_is_a_soft_failure(client, fake_client):
    fake_client.queue("```json\n[]\n```")

    response = client.post("/generate-csv", json={"prompt": "nothing at all"})

    assert response.status_code == 200
    assert response.json() == {
        "message": "Generated empty CSV. Please refine your prompt or data.",
        "csvContent": "",
        "fileName": "empty_generated.csv",
        "empty": True,
    }


def test_generate_csv_does_not_touch_sessions(client, fake_client, store):
    client.post("/generate-csv", json={"prompt": "a table", "sessionId": "unknown"})

    assert len(store) == 0


def test_generate_csv_requires_prompt(client, fake_client):
    response = client.post("/generate-csv", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Prompt for CSV generation cannot be empty."}
    assert fake_client.calls == []


def test_generate_csv_model_failure(client, fake_client):
    fake_client.fail_with("timed out")

    response = client.post("/generate-csv", json={"prompt": "a table"})

    assert response.status_code == 500
    assert response.json() == {"message": "Failed to generate CSV", "error": "timed out", "sessionId": None}


def test_generate_image_reattaches_analyzed_image(client, fake_client, png_b64):
    session_id = client.post("/analyze-image", json={"image": png_b64}).json()["sessionId"]
    fake_client.queue("Plan: recolour the square blue.")

    body = client.post("/generate-image", json={"prompt": "make it blue", "sessionId": session_id}).json()

    assert body == {
        "message": "Image analysis/description generated successfully",
        "response": "Plan: recolour the square blue.",
        "fileName": "image_analysis.txt",
    }
    call = fake_client.calls[-1]
    assert call["op"] == "complete"
    assert call["images"] == [png_b64]
    assert call["prompt"] == "Given the attached image, please provide a textual output: make it blue"


def test_generate_image_without_session_sends_bare_prompt(client, fake_client):
    client.post("/generate-image", json={"prompt": "a lighthouse at dusk"})

    call = fake_client.calls[0]
    assert call["prompt"] == "a lighthouse at dusk"
    assert call["images"] == []


def test_generate_image_model_failure(client, fake_client):
    fake_client.fail_with("model not loaded")

    response = client.post("/generate-image", json={"prompt": "a lighthouse"})

    assert response.status_code == 500
    assert response.json()["message"] == "Failed to process image with multimodal model"
