from storefront.models import Profile, UserRole
from storefront.users.service import UserAdminService


def test_list_users_requires_admin(client, operator_headers):
    assert client.get("/api/v1/users/", headers=operator_headers).status_code == 403


def test_list_users_filters_by_role_and_search(client, admin_headers, make_user):
    make_user("operator", full_name="Lucía Quispe", phone="+51 999 111 222")
    make_user("customer", full_name="Carlos Mendoza")

    operators = client.get("/api/v1/users/", headers=admin_headers, params={"role": "operator"}).json()
    assert [user["full_name"] for user in operators["users"]] == ["Lucía Quispe"]

    by_phone = client.get("/api/v1/users/", headers=admin_headers, params={"search": "999 111"}).json()
    assert by_phone["total"] == 1

    everyone = client.get("/api/v1/users/", headers=admin_headers, params={"limit": 2}).json()
    assert everyone["total"] == 3
    assert everyone["total_pages"] == 2
    assert everyone["users"][0]["full_name"] == "Carlos Mendoza"


def test_create_user_with_role(client, admin_headers, db_session):
    response = client.post("/api/v1/users/", headers=admin_headers, json={
        "email": "taquilla@boleteria.pe",
        "password": "secret123",
        "full_name": "Taquilla Centro",
        "role": "operator"
    })

    assert response.status_code == 201
    user_id = response.json()["user"]["id"]
    role = db_session.query(UserRole).filter(UserRole.user_id == user_id).one()
    assert role.role == "operator"
    assert role.permissions == ["read"]


def test_create_admin_gets_all_permissions(client, admin_headers, db_session):
    response = client.post("/api/v1/users/", headers=admin_headers, json={
        "email": "jefa@boleteria.pe",
        "password": "secret123",
        "full_name": "Jefa de Sistemas",
        "role": "admin"
    })

    user_id = response.json()["user"]["id"]
    assert db_session.query(UserRole).filter(UserRole.user_id == user_id).one().permissions == ["*"]


def test_create_user_invalid_role(client, admin_headers, db_session):
    response = client.post("/api/v1/users/", headers=admin_headers, json={
        "email": "x@boleteria.pe",
        "password": "secret123",
        "full_name": "X",
        "role": "superuser"
    })

    assert response.status_code == 400
    assert db_session.query(Profile).filter(Profile.email == "x@boleteria.pe").count() == 0


def test_create_user_requires_fields(client, admin_headers):
    response = client.post("/api/v1/users/", headers=admin_headers, json={"email": "x@boleteria.pe"})
    assert response.status_code == 400


def test_create_user_duplicate_email(client, admin_headers, customer):
    response = client.post("/api/v1/users/", headers=admin_headers, json={
        "email": customer.email,
        "password": "secret123",
        "full_name": "Duplicate"
    })

    assert response.status_code == 400


def test_failed_role_step_removes_account(client, admin_headers, db_session, monkeypatch):
    def failing_assign_role(db, user_id, role):
        raise RuntimeError("user_roles insert failed")

    monkeypatch.setattr(UserAdminService, "assign_role", staticmethod(failing_assign_role))

    response = client.post("/api/v1/users/", headers=admin_headers, json={
        "email": "half@boleteria.pe",
        "password": "secret123",
        "full_name": "Half Created"
    })

    assert response.status_code == 500
    assert db_session.query(Profile).filter(Profile.email == "half@boleteria.pe").count() == 0


def test_failed_cleanup_is_only_logged(caplog):
    class BrokenSession:
        rollbacks = 0

        def rollback(self):
            self.rollbacks += 1

        def query(self, *args):
            raise RuntimeError("connection lost")

    session = BrokenSession()

    UserAdminService.remove_account(session, "user-1")

    assert session.rollbacks == 2
    assert "Cleanup of partially created user failed" in caplog.text


def test_get_user_with_booking_summary(client, admin_headers, customer, make_booking, make_event):
    event = make_event()
    make_booking(customer, event=event, status="confirmed")
    make_booking(customer, event=event, status="cancelled")

    response = client.get(f"/api/v1/users/{customer.id}", headers=admin_headers)

    user = response.json()["user"]
    assert user["total_bookings"] == 2
    assert user["total_spent"] == 100.0
    assert user["user_roles"][0]["role"] == "customer"


def test_get_unknown_user(client, admin_headers):
    assert client.get("/api/v1/users/nobody", headers=admin_headers).status_code == 404


def test_update_role_replaces_roles(client, admin_headers, customer, db_session):
    response = client.put(f"/api/v1/users/{customer.id}/role", headers=admin_headers, json={"role": "operator"})

    assert response.status_code == 200
    roles = [role.role for role in db_session.query(UserRole).filter(UserRole.user_id == customer.id)]
    assert roles == ["operator"]


def test_update_role_invalid(client, admin_headers, customer):
    response = client.put(f"/api/v1/users/{customer.id}/role", headers=admin_headers, json={"role": "root"})
    assert response.status_code == 400


def test_admin_cannot_change_own_role(client, admin, admin_headers):
    response = client.put(f"/api/v1/users/{admin.id}/role", headers=admin_headers, json={"role": "customer"})
    assert response.status_code == 400


def test_delete_user_with_active_bookings(client, admin_headers, customer, make_booking, make_event):
    make_booking(customer, event=make_event(), status="confirmed")

    response = client.delete(f"/api/v1/users/{customer.id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete user with 1 active bookings"


def test_delete_user_with_past_bookings(client, admin_headers, customer, make_booking, make_event, db_session):
    make_booking(customer, event=make_event(), status="completed")

    response = client.delete(f"/api/v1/users/{customer.id}", headers=admin_headers)

    assert response.status_code == 200
    assert db_session.query(Profile).filter(Profile.id == customer.id).count() == 0
    assert db_session.query(UserRole).filter(UserRole.user_id == customer.id).count() == 0
