import io

from openpyxl import Workbook, load_workbook

API = "/api/v1"


def _formulation_xlsx():
    wb = Workbook()
    ws = wb.active
    for row in (["Item", "PROD-SK-100"], ["Producto", "Sabor Carne"], [], ["Referencia", "PRODUCTOS", "CANTIDAD"], ["SK-101", "Sal", 10]):
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


async def test_health_sets_correlation_header(client):
    res = await client.get(f"{API}/health", headers={"X-Correlation-ID": "abc-123"})
    assert res.status_code == 200
    assert res.json()["message"] == "Healthy"
    assert res.headers["X-Correlation-ID"] == "abc-123"


async def test_login_and_me(client, quality_user):
    res = await client.post(f"{API}/auth/login", data={"username": quality_user.email, "password": "secret123"})
    assert res.status_code == 200
    tokens = res.json()

    me = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.status_code == 200
    assert me.json()["documentType"] == "CC"
    assert me.json()["role"] == "Quality"

    refreshed = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200


async def test_login_errors_use_error_envelope(client, make_user):
    inactive = await make_user("Production", is_active=False)

    wrong = await client.post(f"{API}/auth/login", data={"username": inactive.email, "password": "nope"})
    blocked = await client.post(f"{API}/auth/login", data={"username": inactive.email, "password": "secret123"})

    assert wrong.status_code == 401
    body = wrong.json()
    assert body["error"] == {"type": "http_error", "message": "Invalid credentials", "details": None}
    assert body["path"] == f"{API}/auth/login"
    assert body["correlation_id"]
    assert blocked.status_code == 400


async def test_me_requires_token(client):
    res = await client.get(f"{API}/auth/me")
    assert res.status_code == 401


async def test_users_are_admin_only(client, auth, admin, quality_user):
    denied = await client.get(f"{API}/users", headers=auth(quality_user))
    listed = await client.get(f"{API}/users", headers=auth(admin))

    assert denied.status_code == 403
    assert listed.status_code == 200
    assert {u["email"] for u in listed.json()} == {admin.email, quality_user.email}


async def test_create_user_conflict_and_validation(client, auth, admin):
    payload = {
        "name": "Laura Gómez",
        "email": "laura@tropical.com",
        "role": "Production",
        "documentNumber": "55555555",
        "password": "secret123",
        "confirmPassword": "secret123",
    }
    created = await client.post(f"{API}/users", json=payload, headers=auth(admin))
    duplicate = await client.post(f"{API}/users", json=payload, headers=auth(admin))
    mismatch = await client.post(
        f"{API}/users", json={**payload, "email": "otra@tropical.com", "confirmPassword": "x"}, headers=auth(admin)
    )
    short = await client.post(f"{API}/users/{created.json()['id']}/password", json={"newPassword": "123"}, headers=auth(admin))

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["type"] == "conflict"
    assert mismatch.status_code == 422
    assert mismatch.json()["error"]["type"] == "validation_error"
    assert short.status_code == 400


async def test_quality_record_lifecycle(client, auth, admin, quality_user, production_user):
    created = await client.post(
        f"{API}/quality/forms/sensory/records",
        json={"product": "Sabor Carne", "lot": "P-1", "result": "Pendiente"},
        headers=auth(production_user),
    )
    assert created.status_code == 201
    record_id = created.json()["id"]

    forbidden = await client.patch(
        f"{API}/quality/forms/sensory/records/{record_id}/status", json={"status": "Aprobado"}, headers=auth(production_user)
    )
    approved = await client.patch(
        f"{API}/quality/forms/sensory/records/{record_id}/status", json={"status": "Aprobado"}, headers=auth(quality_user)
    )
    listed = await client.get(f"{API}/quality/forms/sensory/records", headers=auth(quality_user))
    unknown = await client.get(f"{API}/quality/forms/nope/records", headers=auth(quality_user))
    deleted = await client.request(
        "DELETE", f"{API}/quality/forms/sensory/records", json={"ids": [record_id, "ghost"]}, headers=auth(admin)
    )

    assert forbidden.status_code == 403
    assert approved.json()["statusIcon"] == "✅"
    assert [r["id"] for r in listed.json()] == [record_id]
    assert unknown.status_code == 404
    assert unknown.json()["error"]["type"] == "not_found"
    assert deleted.json() == {"deleted": 1}


async def test_flow_override_and_pcc_tabs(client, auth, admin, quality_user):
    denied = await client.post(f"{API}/quality/flow/modules/scales_powders/override", headers=auth(quality_user))
    toggled = await client.post(f"{API}/quality/flow/modules/scales_powders/override", headers=auth(admin))
    flow = await client.get(f"{API}/quality/flow/powder", headers=auth(quality_user))
    tabs = await client.get(f"{API}/pcc/tabs", headers=auth(quality_user))

    assert denied.status_code == 403
    assert toggled.json() == {"moduleId": "scales_powders", "overridden": True}
    statuses = {m["id"]: m["status"] for m in flow.json()["modules"]}
    assert statuses["hygiene_powders"] == "unlocked"
    assert statuses["scales_powders"] == "unlocked"
    assert statuses["luminometry_powders"] == "locked"
    assert tabs.json()[0]["status"] == "unlocked"


async def test_production_routes(client, auth, admin, production_user):
    lot = {"type": "powder", "item": "PROD-SK-100", "lot": "P-1", "product": "Sabor Carne", "status": "Pendiente"}
    forbidden = await client.post(f"{API}/production/lots", json=lot, headers=auth(production_user))
    first = await client.post(f"{API}/production/lots", json=lot, headers=auth(admin))
    second = await client.post(f"{API}/production/lots", json={**lot, "lot": "P-2"}, headers=auth(admin))
    ids = [first.json()["id"], second.json()["id"]]

    queued = await client.post(f"{API}/production/queue", json={"ids": ids}, headers=auth(admin))
    head = await client.get(f"{API}/production/queue/next", headers=auth(production_user))
    page = await client.get(f"{API}/production/items/PROD-SK-100", headers=auth(production_user))
    clone = await client.get(
        f"{API}/production/template", params={"type": "powder", "clone_from": ids[0]}, headers=auth(production_user)
    )
    bad_status = await client.patch(f"{API}/production/lots/{ids[0]}/status", json={"status": "Listo"}, headers=auth(admin))

    assert forbidden.status_code == 403
    assert first.status_code == 201
    assert queued.status_code == 200
    assert head.json()["powder"]["id"] == ids[0]
    assert head.json()["liquid"] is None
    assert [lot["lot"] for lot in page.json()["lots"]] == ["P-1", "P-2"]
    assert clone.json()["product"] == "Sabor Carne"
    assert "lot" not in clone.json()
    assert bad_status.status_code == 422


async def test_notifications_bell_and_chat(client, auth, admin, quality_user):
    sent = await client.post(
        f"{API}/notifications",
        json={"title": "Revisión", "message": "Revisar higiene", "recipient": "Quality"},
        headers=auth(admin),
    )
    count = await client.get(f"{API}/notifications/unread-count", headers=auth(quality_user))
    reply = await client.post(
        f"{API}/notifications/{sent.json()['id']}/replies", json={"message": "Listo"}, headers=auth(quality_user)
    )
    read_all = await client.post(f"{API}/notifications/read-all", headers=auth(quality_user))
    convs = await client.get(f"{API}/chat/conversations", headers=auth(quality_user))
    messages = await client.get(f"{API}/chat/conversations/Quality/messages", headers=auth(quality_user))

    assert sent.status_code == 201
    assert sent.json()["sender_name"] == admin.name
    assert count.json() == {"unread_count": 1}
    assert reply.status_code == 201
    assert reply.json()["replies"][0]["sender_id"] == quality_user.id
    assert read_all.json() == {"unread_count": 0}
    assert {c["id"] for c in convs.json()} == {"Quality", admin.id}
    assert [m["message"] for m in messages.json()] == ["Revisar higiene", "Listo"]


async def test_dashboards(client, auth, admin, production_user):
    home = await client.get(f"{API}/dashboard", headers=auth(production_user))
    production = await client.get(f"{API}/dashboard/production", headers=auth(production_user))
    denied = await client.get(f"{API}/dashboard/administrator", headers=auth(production_user))
    admin_board = await client.get(f"{API}/dashboard/administrator", headers=auth(admin))

    assert home.json() == {"path": "/dashboard/production", "role": "Production"}
    assert production.json()["averagePerformance"] == "0.00"
    assert denied.status_code == 403
    assert admin_board.json()["userCount"] == 2


async def test_reports_json_csv_and_xlsx(client, auth, admin):
    await client.post(
        f"{API}/quality/forms/hygiene/records",
        json={"area": "Mezcladora #1", "date": "2024-05-21", "status": "Pendiente", "signature": "data:x"},
        headers=auth(admin),
    )

    as_json = await client.get(f"{API}/reports/hygiene", headers=auth(admin))
    as_csv = await client.get(f"{API}/reports/hygiene", params={"format": "csv"}, headers=auth(admin))
    as_xlsx = await client.get(
        f"{API}/reports/hygiene", params={"format": "xlsx", "date_from": "2024-05-01"}, headers=auth(admin)
    )
    bad_format = await client.get(f"{API}/reports/hygiene", params={"format": "doc"}, headers=auth(admin))

    assert as_json.json()[0]["area"] == "Mezcladora #1"
    assert as_csv.headers["content-type"].startswith("text/csv")
    header = as_csv.text.splitlines()[0].split(",")
    assert "area" in header and "signature" not in header and "id" not in header
    sheet = load_workbook(io.BytesIO(as_xlsx.content)).active
    assert sheet.title == "Reporte"
    assert sheet.max_row == 2
    assert bad_format.status_code == 422


async def test_uploads(client, auth, quality_user):
    stored = await client.post(
        f"{API}/uploads",
        data={"folder": "chat"},
        files={"file": ("foto.png", b"\x89PNG data", "image/png")},
        headers=auth(quality_user),
    )
    empty = await client.post(
        f"{API}/uploads", files={"file": ("vacio.png", b"", "image/png")}, headers=auth(quality_user)
    )

    assert stored.status_code == 201
    body = stored.json()
    assert body["path"].startswith("chat/") and body["path"].endswith("_foto.png")
    assert body["url"] == f"/files/{body['path']}"
    assert empty.status_code == 422
    assert empty.json()["error"]["type"] == "invalid_upload"


async def test_formulation_upload_route(client, auth, production_user, quality_user):
    created = await client.post(
        f"{API}/formulations",
        files={"file": ("Formulacion_Carne.xlsx", _formulation_xlsx(), "application/octet-stream")},
        headers=auth(production_user),
    )
    denied = await client.delete(f"{API}/formulations/{created.json()['id']}", headers=auth(quality_user))
    download = await client.get(f"{API}/formulations/{created.json()['id']}/file", headers=auth(quality_user))

    assert created.status_code == 201
    assert created.json()["item"] == "PROD-SK-100"
    assert denied.status_code == 403
    assert download.status_code == 200
    assert "Formulacion_Carne.xlsx" in download.headers["content-disposition"]


async def test_lot_with_non_numeric_fields_is_rejected(client, auth, admin, production_user):
    bad_order = await client.post(
        f"{API}/production/lots", json={"type": "liquid", "productionOrder": "primero"}, headers=auth(admin)
    )
    bad_real = await client.post(
        f"{API}/production/lots",
        json={"type": "powder", "finalProductReal": "n/a", "finalProductTheoreticalPowder": 10},
        headers=auth(admin),
    )
    queue = await client.get(f"{API}/production/queue", headers=auth(production_user))
    board = await client.get(f"{API}/dashboard/production", headers=auth(production_user))

    assert bad_order.status_code == 400
    assert bad_order.json()["error"]["type"] == "domain_error"
    assert bad_order.json()["error"]["details"] == {"fields": ["productionOrder"]}
    assert bad_real.status_code == 400
    assert bad_real.json()["error"]["details"] == {"fields": ["finalProductReal"]}
    assert queue.status_code == 200
    assert queue.json() == []
    assert board.status_code == 200


async def test_reports_pdf_export(client, auth, admin):
    await client.post(
        f"{API}/quality/forms/hygiene/records",
        json={"area": "Mezcladora #1", "date": "2024-05-21", "status": "Pendiente"},
        headers=auth(admin),
    )

    res = await client.get(f"{API}/reports/hygiene", params={"format": "pdf"}, headers=auth(admin))

    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    disposition = res.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="Reporte_hygiene_')
    assert disposition.endswith('.pdf"')
    assert res.content.startswith(b"%PDF")
