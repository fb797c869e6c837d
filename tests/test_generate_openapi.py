import json

from task_api.generate_openapi import generate_openapi


def test_generate_openapi_writes_schema(tmp_path):
    out = tmp_path / "interfaces" / "openapi.json"
    written = generate_openapi(str(out))
    assert written == str(out)

    schema = json.loads(out.read_text(encoding="utf-8"))
    assert schema["info"]["title"] == "Task API"
    for path in ("/api/tasks", "/api/tasks/{task_id}", "/api/tasks/{task_id}/status", "/health"):
        assert path in schema["paths"]
    assert set(schema["paths"]["/api/tasks"]) == {"get", "post"}
    assert set(schema["paths"]["/api/tasks/{task_id}"]) == {"get", "delete"}
    assert {t["name"] for t in schema["tags"]} >= {"tasks", "health"}

    create_body = schema["paths"]["/api/tasks"]["post"]["requestBody"]["content"]["application/json"]["schema"]
    assert "dueDate" in create_body["properties"]
