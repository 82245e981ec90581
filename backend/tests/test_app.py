import base64
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from backend.app import create_app
from backend.auth import InMemoryAuthClient
from backend.db import InMemoryDbClient
from backend.dependencies import get_auth_client, get_db_client, get_storage_client
from backend.pin import hash_pin
from backend.storage import InMemoryStorageClient


def _selfie_data_url(raw: bytes = b"fake-jpeg-bytes") -> str:
    return "data:image/jpeg;base64," + base64.b64encode(raw).decode("ascii")


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.storage = InMemoryStorageClient()
        self.auth_client = InMemoryAuthClient()
        app = create_app()
        app.dependency_overrides[get_db_client] = lambda: self.db
        app.dependency_overrides[get_storage_client] = lambda: self.storage
        app.dependency_overrides[get_auth_client] = lambda: self.auth_client
        self.client = TestClient(app)

    def test_update_pin_then_verify(self):
        self.db.save_user("u1", "prestador", {"uid": "u1", "email": "a@b.com"})

        response = self.client.post(
            "/api/auth/update-pin",
            json={"uid": "u1", "rol": "prestador", "newPin": "1234"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"success": True, "message": "PIN actualizado correctamente."},
        )

        hashed = self.db.documents["prestadores/u1"]["hashedPin"]
        self.assertNotEqual(hashed, "1234")

        ok = self.client.post(
            "/api/auth/verify-pin", json={"pin": "1234", "hashedPin": hashed}
        )
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.json(), {"isMatch": True})

        wrong = self.client.post(
            "/api/auth/verify-pin", json={"pin": "9999", "hashedPin": hashed}
        )
        self.assertEqual(wrong.status_code, 200)
        self.assertEqual(wrong.json(), {"isMatch": False})

    def test_update_pin_uses_fresh_salt(self):
        self.db.save_user("u1", "usuario", {"uid": "u1"})
        self.client.post(
            "/api/auth/update-pin", json={"uid": "u1", "rol": "usuario", "newPin": "1234"}
        )
        first = self.db.documents["usuarios_generales/u1"]["hashedPin"]
        self.client.post(
            "/api/auth/update-pin", json={"uid": "u1", "rol": "usuario", "newPin": "1234"}
        )
        second = self.db.documents["usuarios_generales/u1"]["hashedPin"]
        self.assertNotEqual(first, second)

    def test_update_pin_unknown_role_targets_general_users(self):
        self.db.save_user("u2", "usuario", {"uid": "u2"})
        response = self.client.post(
            "/api/auth/update-pin",
            json={"uid": "u2", "rol": "administrador", "newPin": "4321"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("hashedPin", self.db.documents["usuarios_generales/u2"])

    def test_update_pin_missing_fields(self):
        for body in (
            {"uid": "u1", "rol": "prestador"},
            {"uid": "u1", "newPin": "1234"},
            {"rol": "prestador", "newPin": "1234"},
            {"uid": "", "rol": "prestador", "newPin": "1234"},
            {"uid": "u1", "rol": "", "newPin": "1234"},
            {"uid": "u1", "rol": "prestador", "newPin": ""},
            {},
        ):
            response = self.client.post("/api/auth/update-pin", json=body)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(
                response.json(), {"error": "Faltan datos para actualizar el PIN."}
            )

    def test_update_pin_missing_user_is_server_error(self):
        response = self.client.post(
            "/api/auth/update-pin",
            json={"uid": "ghost", "rol": "comercio", "newPin": "1234"},
        )
        self.assertEqual(response.status_code, 500)
        self.assertIn("ghost", response.json()["error"])

    def test_verify_pin_missing_fields(self):
        hashed = hash_pin("1234", rounds=4)
        for body in (
            {"pin": "1234"},
            {"hashedPin": hashed},
            {"pin": "", "hashedPin": hashed},
            {"pin": "1234", "hashedPin": ""},
            {},
        ):
            response = self.client.post("/api/auth/verify-pin", json=body)
            self.assertEqual(response.status_code, 400, body)
            self.assertEqual(
                response.json(), {"error": "Faltan datos para la verificación."}
            )

    def test_verify_pin_malformed_hash(self):
        response = self.client.post(
            "/api/auth/verify-pin", json={"pin": "1234", "hashedPin": "not-a-hash"}
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(),
            {"error": "Ocurrió un error en el servidor al verificar el PIN."},
        )

    def test_verify_pin_accepts_bcryptjs_prefix(self):
        hashed = hash_pin("2468", rounds=4)
        legacy = "$2a$" + hashed[4:]
        response = self.client.post(
            "/api/auth/verify-pin", json={"pin": "2468", "hashedPin": legacy}
        )
        self.assertEqual(response.json(), {"isMatch": True})

    def test_malformed_json_is_bad_request(self):
        response = self.client.post(
            "/api/auth/verify-pin",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_register_prestador(self):
        response = self.client.post(
            "/api/auth/register",
            json={
                "rol": "prestador",
                "selfieData": _selfie_data_url(),
                "formData": {
                    "email": "ana@example.com",
                    "contrasena": "secreto1",
                    "pin": "1357",
                    "nombre": "Ana",
                    "apellido": "Pérez",
                    "localidad": {"nombre": "Rosario", "provinciaNombre": "Santa Fe"},
                    "seleccionCategoria": {"categoria": "Plomería"},
                    "matricula": "M-1",
                },
            },
        )
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertTrue(payload["success"])
        uid = payload["uid"]

        record = self.db.documents[f"prestadores/{uid}"]
        self.assertEqual(record["categoria"], {"categoria": "Plomería"})
        self.assertEqual(record["selfiePath"], f"selfies/{uid}/profile.jpg")
        self.assertNotEqual(record["hashedPin"], "1357")
        self.assertTrue(record["activo"])
        self.assertEqual(
            self.storage.stored_objects[f"selfies/{uid}/profile.jpg"],
            b"fake-jpeg-bytes",
        )
        self.assertEqual(
            self.storage.objects[f"selfies/{uid}/profile.jpg"].content_type,
            "image/jpeg",
        )

    def test_register_duplicate_email(self):
        body = {
            "rol": "usuario",
            "selfieData": _selfie_data_url(),
            "formData": {"email": "dup@example.com", "contrasena": "secreto1", "pin": "1111"},
        }
        self.assertEqual(self.client.post("/api/auth/register", json=body).status_code, 201)
        response = self.client.post("/api/auth/register", json=body)
        self.assertEqual(response.status_code, 409)

    def test_register_failed_upload_removes_account(self):
        body = {
            "rol": "comercio",
            "selfieData": _selfie_data_url(),
            "formData": {"email": "tienda@example.com", "contrasena": "secreto1", "pin": "2222"},
        }
        with patch.object(
            self.storage, "upload_bytes", side_effect=RuntimeError("bucket down")
        ):
            response = self.client.post("/api/auth/register", json=body)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(self.auth_client.accounts, {})
        self.assertEqual(self.db.documents, {})

        # The same email can register once storage is back.
        response = self.client.post("/api/auth/register", json=body)
        self.assertEqual(response.status_code, 201)

    def test_register_missing_fields_and_bad_selfie(self):
        response = self.client.post(
            "/api/auth/register",
            json={"rol": "usuario", "formData": {"email": "x@example.com"}},
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            "/api/auth/register",
            json={
                "rol": "usuario",
                "selfieData": "https://example.com/selfie.jpg",
                "formData": {"email": "x@example.com", "contrasena": "secreto1", "pin": "1"},
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.auth_client.accounts, {})

    def test_list_providers(self):
        self.db.save_user(
            "p1",
            "prestador",
            {
                "nombre": "Ana",
                "localidad": {"nombre": "Rosario", "provinciaNombre": "Santa Fe"},
                "categoria": {"categoria": "Plomería", "subcategoria": "Gas"},
            },
        )
        self.db.save_user(
            "p2",
            "prestador",
            {
                "nombre": "Luis",
                "localidad": {"nombre": "Rosario", "provinciaNombre": "Santa Fe"},
                "categoria": {"categoria": "Electricidad"},
            },
        )
        self.db.save_user(
            "c1",
            "comercio",
            {
                "localidad": {"nombre": "Rosario", "provinciaNombre": "Santa Fe"},
                "categoria": {"categoria": "Plomería"},
            },
        )

        response = self.client.get(
            "/api/prestadores",
            params={"categoria": "Plomería", "provincia": "Santa Fe", "localidad": "Rosario"},
        )
        self.assertEqual(response.status_code, 200)
        prestadores = response.json()["prestadores"]
        self.assertEqual([p["uid"] for p in prestadores], ["p1"])
        self.assertEqual(prestadores[0]["collection"], "prestadores")

        response = self.client.get(
            "/api/prestadores",
            params={
                "categoria": "Plomería",
                "provincia": "Santa Fe",
                "localidad": "Rosario",
                "subcategoria": "Electricidad domiciliaria",
            },
        )
        self.assertEqual(response.json()["prestadores"], [])

    def test_list_providers_requires_filters(self):
        response = self.client.get("/api/prestadores", params={"categoria": "Plomería"})
        self.assertEqual(response.status_code, 400)

    def test_sign_url_uses_storage_client(self):
        response = self.client.get("/api/sign-url", params={"path": "foo/bar.png"})
        self.assertEqual(response.status_code, 200)
        self.assertIn("url", response.json())
        self.assertIn("foo/bar.png", response.json()["url"])

    def test_sign_url_for_upload(self):
        response = self.client.get(
            "/api/sign-url",
            params={"path": "selfies/u1/profile.jpg", "op": "put"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("op=put", response.json()["url"])
        self.assertIn("contentType=image/jpeg", response.json()["url"])

        response = self.client.get(
            "/api/sign-url", params={"path": "x", "op": "delete"}
        )
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
