"""HTTP API tests for auth, users, roles and CRM resources."""

from omnicrm.db.models import Deal, User

from tests.factories import TEST_PASSWORD, auth_headers, create_contact, create_pipeline


class TestAuth:

    def test_login(self, client, member):
        response = client.post(
            "/api/auth/login",
            data={"username": member.email, "password": TEST_PASSWORD},
        )
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

    def test_login_wrong_password(self, client, member):
        response = client.post(
            "/api/auth/login",
            data={"username": member.email, "password": "nope"},
        )
        assert response.status_code == 401

    def test_invalid_token(self, client, org):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    def test_me_returns_permissions(self, client, member, member_headers):
        response = client.get("/api/auth/me", headers=member_headers)
        assert response.status_code == 200

        data = response.json()
        assert data["user"]["email"] == member.email
        assert data["permissions"]["role"] == "member"
        assert "contacts.view" in data["permissions"]["effective_permissions"]
        assert "contacts.create" not in data["permissions"]["effective_permissions"]
        assert "contacts" in data["permissions"]["accessible_modules"]


class TestUsers:

    def test_invite_user(self, client, admin_headers):
        response = client.post(
            "/api/users/invite",
            json={"email": "new@acme.io", "name": "New", "role": "agent"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["temporary_password"]

    def test_invite_unknown_role(self, client, admin_headers):
        response = client.post(
            "/api/users/invite",
            json={"email": "new@acme.io", "role": "ghost"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_change_user_role(self, client, admin_headers, member, db_session):
        response = client.patch(f"/api/users/{member.id}", json={"role": "agent"}, headers=admin_headers)
        assert response.status_code == 200

        summary = client.get(f"/api/users/{member.id}/permissions", headers=admin_headers).json()
        assert summary["role"] == "agent"
        assert "contacts.edit" in summary["effective_permissions"]

    def test_set_permissions_rejects_unknown_keys(self, client, admin_headers, member):
        response = client.put(
            f"/api/users/{member.id}/permissions",
            json={"grant": ["contacts.fly"], "revoke": []},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_manager_cannot_set_permissions(self, client, make_user, member):
        headers = auth_headers(make_user("manager"))
        response = client.put(
            f"/api/users/{member.id}/permissions",
            json={"grant": ["contacts.create"]},
            headers=headers,
        )
        assert response.status_code == 403
        assert response.json()["required_permission"] == "permissions.manage"

    def test_cannot_delete_self(self, client, admin, admin_headers):
        assert client.delete(f"/api/users/{admin.id}", headers=admin_headers).status_code == 400

    def test_delete_user(self, client, admin_headers, member, db_session):
        member_id = member.id
        assert client.delete(f"/api/users/{member_id}", headers=admin_headers).status_code == 204
        assert db_session.query(User).filter(User.id == member_id).count() == 0


class TestRoles:

    def test_discover_permissions(self, client, member_headers):
        response = client.get("/api/roles/permissions?locale=ar", headers=member_headers)
        assert response.status_code == 200

        data = response.json()
        assert data["locale"] == "ar"
        keys = [c["key"] for c in data["categories"]]
        assert keys[:3] == ["crm", "settings", "team"]
        crm = data["categories"][0]
        assert crm["label"] == crm["label_ar"]
        assert crm["modules"][0]["key"] == "contacts"
        assert data["matrix"]["contacts"]["create"] is True

    def test_create_role(self, client, admin_headers):
        response = client.post(
            "/api/roles",
            json={"name": "Night Shift", "permissions": ["contacts.view", "tickets.view"]},
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["slug"] == "night_shift"
        assert data["is_system"] is False

    def test_create_role_invalid_permission(self, client, admin_headers):
        response = client.post(
            "/api/roles",
            json={"name": "Broken", "permissions": ["contacts.fly"]},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_cannot_delete_system_role(self, client, admin_headers):
        roles = client.get("/api/roles", headers=admin_headers).json()
        member_role = next(r for r in roles if r["slug"] == "member")
        response = client.delete(f"/api/roles/{member_role['id']}", headers=admin_headers)
        assert response.status_code == 400

    def test_delete_custom_role(self, client, admin_headers):
        created = client.post("/api/roles", json={"name": "Temp"}, headers=admin_headers).json()
        assert client.delete(f"/api/roles/{created['id']}", headers=admin_headers).status_code == 204


class TestCrm:

    def test_contact_lifecycle(self, client, admin_headers):
        contact = client.post(
            "/api/crm/contacts",
            json={"name": "Omar", "status": "lead"},
            headers=admin_headers,
        ).json()

        tagged = client.patch(
            f"/api/crm/contacts/{contact['id']}/tags",
            json={"tags": ["vip", "vip", "riyadh"]},
            headers=admin_headers,
        )
        assert tagged.json()["tags"] == ["vip", "riyadh"]

        stats = client.get("/api/crm/contacts/stats", headers=admin_headers).json()
        assert stats["total"] == 1
        assert stats["by_status"] == {"lead": 1}

        deleted = client.delete(f"/api/crm/contacts/{contact['id']}", headers=admin_headers)
        assert deleted.status_code == 204

    def test_contact_not_found(self, client, admin_headers):
        response = client.get(
            "/api/crm/contacts/00000000-0000-0000-0000-000000000000", headers=admin_headers
        )
        assert response.status_code == 404

    def test_segment_calculate(self, client, admin_headers, db_session, org):
        create_contact(db_session, org=org, status="lead", tags=["vip"])
        create_contact(db_session, org=org, status="lead")
        create_contact(db_session, org=org, status="customer", tags=["vip"])
        db_session.commit()

        segment = client.post(
            "/api/crm/segments",
            json={"name": "VIP leads", "filters": {"status": "lead", "tags": ["vip"]}},
            headers=admin_headers,
        ).json()
        calculated = client.post(f"/api/crm/segments/{segment['id']}/calculate", headers=admin_headers)
        assert calculated.status_code == 200
        assert calculated.json()["contact_count"] == 1

    def test_deal_flow(self, client, admin_headers, db_session, org):
        pipeline = create_pipeline(db_session, org=org)
        db_session.commit()
        first, second = pipeline.stages[0], pipeline.stages[1]

        deal = client.post(
            "/api/crm/deals",
            json={"title": "Fleet renewal", "value": 1200, "pipeline_id": str(pipeline.id)},
            headers=admin_headers,
        ).json()
        assert deal["stage_id"] == str(first.id)

        moved = client.patch(
            f"/api/crm/deals/{deal['id']}/stage",
            json={"stage_id": str(second.id)},
            headers=admin_headers,
        )
        assert moved.json()["stage_id"] == str(second.id)

        won = client.post(f"/api/crm/deals/{deal['id']}/won", headers=admin_headers)
        assert won.json()["status"] == "won"

    def test_pipeline_stages(self, client, admin_headers):
        pipeline = client.post(
            "/api/crm/pipelines",
            json={"name": "Sales", "stages": ["Lead", "Won"]},
            headers=admin_headers,
        ).json()
        assert [s["name"] for s in pipeline["stages"]] == ["Lead", "Won"]

        updated = client.post(
            f"/api/crm/pipelines/{pipeline['id']}/stages",
            json={"name": "Proposal", "position": 1},
            headers=admin_headers,
        ).json()
        assert [s["name"] for s in updated["stages"]] == ["Lead", "Proposal", "Won"]

    def test_stage_with_deals_cannot_be_deleted(self, client, admin_headers, db_session, org):
        pipeline = create_pipeline(db_session, org=org)
        stage = pipeline.stages[0]
        db_session.add(Deal(org_id=org.id, title="D", pipeline_id=pipeline.id, stage_id=stage.id))
        db_session.commit()

        response = client.delete(
            f"/api/crm/pipelines/{pipeline.id}/stages/{stage.id}", headers=admin_headers
        )
        assert response.status_code == 400

    def test_agent_cannot_delete_company(self, client, make_user, admin_headers):
        company = client.post("/api/crm/companies", json={"name": "Acme"}, headers=admin_headers).json()
        headers = auth_headers(make_user("agent"))
        response = client.delete(f"/api/crm/companies/{company['id']}", headers=headers)
        assert response.status_code == 403
        assert response.json()["required_permission"] == "companies.delete"

    def test_agent_can_create_and_edit_company(self, client, make_user):
        headers = auth_headers(make_user("agent"))
        created = client.post("/api/crm/companies", json={"name": "Acme"}, headers=headers)
        assert created.status_code == 201

        updated = client.put(
            f"/api/crm/companies/{created.json()['id']}",
            json={"industry": "Retail"},
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["industry"] == "Retail"


class TestPartialUpdates:

    def test_contact_name_cannot_be_nulled(self, client, admin_headers, db_session, org):
        contact = create_contact(db_session, org=org, name="Omar")
        db_session.commit()

        response = client.put(
            f"/api/crm/contacts/{contact.id}", json={"name": None}, headers=admin_headers
        )
        assert response.status_code == 422
        assert client.get(f"/api/crm/contacts/{contact.id}", headers=admin_headers).json()["name"] == "Omar"

    def test_contact_optional_column_can_be_cleared(self, client, admin_headers, db_session, org):
        contact = create_contact(db_session, org=org, status="lead")
        db_session.commit()

        response = client.put(
            f"/api/crm/contacts/{contact.id}", json={"status": None}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] is None

    def test_company_name_cannot_be_nulled(self, client, admin_headers):
        company = client.post("/api/crm/companies", json={"name": "Acme"}, headers=admin_headers).json()
        response = client.put(
            f"/api/crm/companies/{company['id']}", json={"name": None}, headers=admin_headers
        )
        assert response.status_code == 422

    def test_segment_required_fields_cannot_be_nulled(self, client, admin_headers):
        segment = client.post("/api/crm/segments", json={"name": "Leads"}, headers=admin_headers).json()
        for body in ({"filters": None}, {"description": None}, {"name": None}):
            response = client.put(f"/api/crm/segments/{segment['id']}", json=body, headers=admin_headers)
            assert response.status_code == 422, body

    def test_deal_title_and_value_cannot_be_nulled(self, client, admin_headers):
        deal = client.post("/api/crm/deals", json={"title": "Renewal"}, headers=admin_headers).json()
        for body in ({"title": None}, {"value": None}):
            response = client.put(f"/api/crm/deals/{deal['id']}", json=body, headers=admin_headers)
            assert response.status_code == 422, body

    def test_partial_update_keeps_other_fields(self, client, admin_headers):
        segment = client.post(
            "/api/crm/segments",
            json={"name": "Leads", "filters": {"status": "lead"}},
            headers=admin_headers,
        ).json()
        response = client.put(
            f"/api/crm/segments/{segment['id']}", json={"name": "Hot leads"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["filters"] == {"status": "lead"}

    def test_negative_stage_position_rejected(self, client, admin_headers):
        pipeline = client.post(
            "/api/crm/pipelines",
            json={"name": "Sales", "stages": ["Lead", "Won"]},
            headers=admin_headers,
        ).json()
        stage_id = pipeline["stages"][0]["id"]

        added = client.post(
            f"/api/crm/pipelines/{pipeline['id']}/stages",
            json={"name": "Proposal", "position": -1},
            headers=admin_headers,
        )
        assert added.status_code == 422

        moved = client.put(
            f"/api/crm/pipelines/{pipeline['id']}/stages/{stage_id}",
            json={"position": -1},
            headers=admin_headers,
        )
        assert moved.status_code == 422


class TestSettingsLookups:

    LOOKUPS = (
        ("/api/crm/tags", "tags"),
        ("/api/crm/statuses", "statuses"),
        ("/api/crm/lead-sources", "lead_sources"),
    )

    def test_manager_cannot_create(self, client, make_user):
        headers = auth_headers(make_user("manager"))
        for url, module in self.LOOKUPS:
            response = client.post(url, json={"name_en": "Referral"}, headers=headers)
            assert response.status_code == 403
            assert response.json() == {
                "error": "INSUFFICIENT_PERMISSIONS",
                "required_permission": f"{module}.create",
            }

    def test_admin_lifecycle(self, client, admin_headers):
        for url, _ in self.LOOKUPS:
            created = client.post(
                url, json={"name_en": "Hot Lead", "name_ar": "عميل مهتم"}, headers=admin_headers
            )
            assert created.status_code == 201
            item = created.json()
            assert item["slug"] == "hot_lead"

            updated = client.put(f"{url}/{item['id']}", json={"color": "#ff0000"}, headers=admin_headers)
            assert updated.status_code == 200
            assert updated.json()["color"] == "#ff0000"

            assert client.delete(f"{url}/{item['id']}", headers=admin_headers).status_code == 204
            assert client.get(url, headers=admin_headers).json() == []

    def test_manager_cannot_edit_or_delete(self, client, admin_headers, make_user):
        headers = auth_headers(make_user("manager"))
        for url, module in self.LOOKUPS:
            item = client.post(url, json={"name_en": "Web"}, headers=admin_headers).json()

            edited = client.put(f"{url}/{item['id']}", json={"name_en": "Website"}, headers=headers)
            assert edited.status_code == 403
            assert edited.json()["required_permission"] == f"{module}.edit"

            deleted = client.delete(f"{url}/{item['id']}", headers=headers)
            assert deleted.status_code == 403
            assert deleted.json()["required_permission"] == f"{module}.delete"

    def test_member_can_list(self, client, admin_headers, member_headers):
        client.post("/api/crm/statuses", json={"name_en": "Lead"}, headers=admin_headers)
        response = client.get("/api/crm/statuses", headers=member_headers)
        assert response.status_code == 200
        assert [s["slug"] for s in response.json()] == ["lead"]

    def test_duplicate_slug_conflicts(self, client, admin_headers):
        client.post("/api/crm/tags", json={"name_en": "VIP"}, headers=admin_headers)
        response = client.post("/api/crm/tags", json={"name_en": "vip"}, headers=admin_headers)
        assert response.status_code == 409

    def test_name_cannot_be_nulled(self, client, admin_headers):
        item = client.post("/api/crm/tags", json={"name_en": "VIP"}, headers=admin_headers).json()
        response = client.put(f"/api/crm/tags/{item['id']}", json={"name_en": None}, headers=admin_headers)
        assert response.status_code == 422
