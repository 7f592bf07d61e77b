# Overview: Pytest coverage for company employees (service and routes).

import pytest

from storefront.services import accounts_service
from storefront.services.accounts_service import EmployeeNotFound
from storefront.services.products_service import CompanyNotFound
from storefront.services.sequence_service import current_value
from storefront.validation import ConflictError


def _hire(company_id, name="Luis", email="luis@acme.test"):
    return accounts_service.create_employee(company_id, {"name": name, "email": email})


class TestEmployees:
    def test_create_allocates_sequential_ids(self, db_session, company):
        first = _hire(company["id"])
        second = _hire(company["id"], name="Marta", email="marta@acme.test")

        assert (first["id"], second["id"]) == (1, 2)
        assert first["company_id"] == company["id"]
        assert first["created_at"].endswith("Z")

    def test_unknown_company_consumes_no_id(self, db_session):
        with pytest.raises(CompanyNotFound):
            _hire(999)
        assert current_value("employees") == 0

    def test_email_is_unique(self, db_session, company):
        _hire(company["id"])
        with pytest.raises(ConflictError):
            _hire(company["id"], name="Other")

    def test_scoped_to_company(self, db_session, company):
        other = accounts_service.create_company({"name": "Other Co", "email": "hi@other.test"})
        employee = _hire(company["id"])
        _hire(other["id"], name="Marta", email="marta@other.test")

        assert [e["id"] for e in accounts_service.list_employees(company["id"])] == [employee["id"]]
        with pytest.raises(EmployeeNotFound):
            accounts_service.get_employee(other["id"], employee["id"])
        with pytest.raises(EmployeeNotFound):
            accounts_service.delete_employee(other["id"], employee["id"])

    def test_update_and_delete(self, db_session, company):
        employee = _hire(company["id"])
        taken = _hire(company["id"], name="Marta", email="marta@acme.test")

        updated = accounts_service.update_employee(company["id"], employee["id"], {"name": "Luis G."})
        assert updated["name"] == "Luis G."
        assert updated["email"] == "luis@acme.test"

        with pytest.raises(ConflictError):
            accounts_service.update_employee(company["id"], employee["id"], {"email": taken["email"]})

        accounts_service.delete_employee(company["id"], employee["id"])
        with pytest.raises(EmployeeNotFound):
            accounts_service.get_employee(company["id"], employee["id"])


class TestEmployeeRoutes:
    def test_crud(self, client, db_session, company):
        base = f"/api/companies/{company['id']}/employees"

        resp = client.post(base, json={"name": "Luis", "email": "luis@acme.test"})
        assert resp.status_code == 201
        employee_id = resp.json["id"]

        resp = client.get(base)
        assert [e["name"] for e in resp.json] == ["Luis"]

        resp = client.put(f"{base}/{employee_id}", json={"name": "Luis G."})
        assert resp.status_code == 200
        assert resp.json["name"] == "Luis G."

        assert client.delete(f"{base}/{employee_id}").status_code == 200
        assert client.get(f"{base}/{employee_id}").status_code == 404

    def test_errors(self, client, db_session, company):
        base = f"/api/companies/{company['id']}/employees"

        assert client.post(base, json={"name": "No Mail"}).status_code == 400
        assert client.post(base, json={"name": "Luis", "email": "l@acme.test", "password": "x"}).status_code == 400
        assert client.post("/api/companies/999/employees", json={"name": "Luis", "email": "l@acme.test"}).status_code == 404
        assert client.get("/api/companies/999/employees").status_code == 404

        client.post(base, json={"name": "Luis", "email": "l@acme.test"})
        assert client.post(base, json={"name": "Luis", "email": "l@acme.test"}).status_code == 409
