import pytest

from .factories import auth


@pytest.fixture()
def seeded(operator, viewer, outsider, admin, operation, private_operation, tools, targets, mitre):
    return {"operation": operation, "private_operation": private_operation}


def create(client, user, **body):
    return client.post("/api/techniques", json=body, headers=auth(user))


def test_requests_without_identity_are_unauthorized(client, seeded):
    res = client.get("/api/techniques")
    assert res.status_code == 401
    assert res.json()["code"] == "UNAUTHORIZED"

    res = client.get("/api/techniques", headers=auth("nobody"))
    assert res.status_code == 401


def test_create_returns_hydrated_record(client, operator, seeded):
    res = create(
        client,
        operator,
        operation_id=seeded["operation"].id,
        description=" Kerberoast service accounts ",
        mitre_technique_id="T1059",
        mitre_sub_technique_id="T1059.001",
        start_time="2025-03-01T10:00:00Z",
        end_time="2025-03-01T10:45:00Z",
        tool_ids=["tool-mimikatz"],
        target_engagements=[{"target_id": "target-dc", "status": "failed"}],
    )
    assert res.status_code == 201

    data = res.json()
    assert data["description"] == "Kerberoast service accounts"
    assert data["operation"] == {"id": seeded["operation"].id, "name": "Operation Nightfall"}
    assert data["mitre_technique"]["tactic"]["id"] == "TA0002"
    assert data["mitre_sub_technique"]["id"] == "T1059.001"
    assert [tool["name"] for tool in data["tools"]] == ["Mimikatz"]
    assert data["target_engagements"] == [
        {
            "target_id": "target-dc",
            "status": "failed",
            "target": {
                "id": "target-dc",
                "name": "Domain Controller",
                "description": None,
                "is_crown_jewel": True,
            },
        }
    ]


def test_create_schema_violation_is_bad_request(client, operator, seeded):
    res = create(
        client,
        operator,
        operation_id=seeded["operation"].id,
        target_engagements=[{"target_id": "target-dc", "status": "maybe"}],
    )
    assert res.status_code == 400
    assert res.json()["code"] == "BAD_REQUEST"

    res = create(client, operator, description="no operation")
    assert res.status_code == 400


def test_create_end_before_start_is_bad_request(client, operator, seeded):
    res = create(
        client,
        operator,
        operation_id=seeded["operation"].id,
        start_time="2025-03-01T10:00:00Z",
        end_time="2025-03-01T09:00:00Z",
    )
    assert res.status_code == 400
    assert res.json()["error"] == "End time cannot be before start time"


def test_viewer_cannot_mutate(client, viewer, seeded):
    res = create(client, viewer, operation_id=seeded["operation"].id)
    assert res.status_code == 403
    assert res.json()["code"] == "FORBIDDEN"


def test_outsider_gets_forbidden_on_mutation_and_not_found_on_read(client, operator, outsider, seeded):
    private_id = seeded["private_operation"].id
    technique_id = create(client, operator, operation_id=private_id).json()["id"]

    assert create(client, outsider, operation_id=private_id).status_code == 403
    res = client.patch(f"/api/techniques/{technique_id}", json={"description": "x"}, headers=auth(outsider))
    assert res.status_code == 403
    assert client.delete(f"/api/techniques/{technique_id}", headers=auth(outsider)).status_code == 403
    res = client.post(
        "/api/techniques/reorder",
        json={"operation_id": private_id, "technique_ids": [technique_id]},
        headers=auth(outsider),
    )
    assert res.status_code == 403

    res = client.get(f"/api/techniques/{technique_id}", headers=auth(outsider))
    assert res.status_code == 404
    res = client.get("/api/techniques", params={"operation_id": private_id}, headers=auth(outsider))
    assert res.status_code == 404


def test_update_partial_and_relationship_semantics(client, operator, seeded):
    technique_id = create(
        client,
        operator,
        operation_id=seeded["operation"].id,
        description="Initial access",
        tool_ids=["tool-cs", "tool-nmap"],
        target_engagements=[
            {"target_id": "target-dc", "status": "succeeded"},
            {"target_id": "target-web", "status": "failed"},
        ],
    ).json()["id"]

    res = client.patch(
        f"/api/techniques/{technique_id}",
        json={"target_engagements": [{"target_id": "target-web", "status": "unknown"}]},
        headers=auth(operator),
    )
    assert res.status_code == 200
    data = res.json()
    assert data["description"] == "Initial access"
    assert {tool["id"] for tool in data["tools"]} == {"tool-cs", "tool-nmap"}
    assert [(e["target_id"], e["status"]) for e in data["target_engagements"]] == [("target-web", "unknown")]

    res = client.patch(f"/api/techniques/{technique_id}", json={"tool_ids": []}, headers=auth(operator))
    assert res.json()["tools"] == []


def test_update_rejects_null_for_non_clearable_fields(client, operator, seeded):
    technique_id = create(client, operator, operation_id=seeded["operation"].id).json()["id"]

    for field in ("description", "tool_ids", "target_engagements"):
        res = client.patch(f"/api/techniques/{technique_id}", json={field: None}, headers=auth(operator))
        assert res.status_code == 400, field


def test_update_missing_technique_is_not_found(client, operator, seeded):
    res = client.patch("/api/techniques/missing", json={"description": "x"}, headers=auth(operator))
    assert res.status_code == 404
    assert res.json() == {"error": "Technique not found", "code": "NOT_FOUND", "status_code": 404}


def test_delete_twice(client, operator, seeded):
    technique_id = create(client, operator, operation_id=seeded["operation"].id, description="gone").json()["id"]

    res = client.delete(f"/api/techniques/{technique_id}", headers=auth(operator))
    assert res.status_code == 200
    assert res.json() == {"id": technique_id, "description": "gone", "operation_id": seeded["operation"].id}

    res = client.delete(f"/api/techniques/{technique_id}", headers=auth(operator))
    assert res.status_code == 404


def test_reorder_and_list_pagination(client, operator, seeded):
    operation_id = seeded["operation"].id
    a, b, c = (
        create(client, operator, operation_id=operation_id, description=name).json()["id"]
        for name in ("a", "b", "c")
    )

    res = client.post(
        "/api/techniques/reorder",
        json={"operation_id": operation_id, "technique_ids": [c, a, b]},
        headers=auth(operator),
    )
    assert res.status_code == 200
    assert res.json() == {"success": True, "operation_id": operation_id, "technique_ids": [c, a, b]}

    res = client.get("/api/techniques", params={"operation_id": operation_id, "limit": 2}, headers=auth(operator))
    page = res.json()
    assert [(t["id"], t["sort_order"]) for t in page["techniques"]] == [(c, 0), (a, 1)]
    assert page["next_cursor"] == b

    res = client.get(
        "/api/techniques",
        params={"operation_id": operation_id, "limit": 2, "cursor": page["next_cursor"]},
        headers=auth(operator),
    )
    page = res.json()
    assert [t["id"] for t in page["techniques"]] == [b]
    assert page["next_cursor"] is None


def test_reorder_foreign_id_is_bad_request(client, operator, seeded):
    own = create(client, operator, operation_id=seeded["operation"].id).json()["id"]
    foreign = create(client, operator, operation_id=seeded["private_operation"].id).json()["id"]

    res = client.post(
        "/api/techniques/reorder",
        json={"operation_id": seeded["operation"].id, "technique_ids": [foreign, own]},
        headers=auth(operator),
    )
    assert res.status_code == 400
    assert res.json()["error"] == "Some technique IDs don't belong to this operation"


@pytest.mark.parametrize("limit", [0, 101])
def test_list_limit_bounds(client, operator, seeded, limit):
    res = client.get("/api/techniques", params={"limit": limit}, headers=auth(operator))
    assert res.status_code == 400


def test_viewer_can_read(client, operator, viewer, seeded):
    technique_id = create(client, operator, operation_id=seeded["private_operation"].id).json()["id"]

    res = client.get(f"/api/techniques/{technique_id}", headers=auth(viewer))
    assert res.status_code == 200
    assert res.json()["operation"]["name"] == "Operation Glasshouse"


def test_blank_mitre_ids_are_bad_request(client, operator, seeded):
    res = create(client, operator, operation_id=seeded["operation"].id, mitre_technique_id="")
    assert res.status_code == 400
    assert res.json()["error"] == "MITRE technique not found"

    technique_id = create(client, operator, operation_id=seeded["operation"].id).json()["id"]
    res = client.patch(
        f"/api/techniques/{technique_id}",
        json={"mitre_sub_technique_id": ""},
        headers=auth(operator),
    )
    assert res.status_code == 400
    assert res.json()["error"] == "MITRE sub-technique not found"


def test_root_endpoint(client):
    res = client.get("/")
    assert res.status_code == 200
    assert res.json()["health"] == "/health"
