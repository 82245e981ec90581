import unittest
from unittest.mock import MagicMock, patch

import requests
from fastapi.testclient import TestClient

from backend import tusfacturas
from backend.app import create_app
from backend.db import InMemoryDbClient
from backend.dependencies import get_db_client, get_tusfacturas_client
from backend.tusfacturas import TusFacturasClient

PERFIL = {
    "viaVerificacion": "cuit_padron",
    "receptorParaFactura": "CUIT",
    "razonSocial": "PEREZ ANA",
    "condicionImpositiva": "MONOTRIBUTO",
    "emailReceptor": "ana@example.com",
    "verifiedAt": "2024-05-01T10:00:00Z",
    "cuitGuardado": "none",
}

PADRON_OK = {
    "error": "N",
    "razon_social": "PEREZ ANA MARIA",
    "condicion_impositiva": "Monotributo",
    "estado": "ACTIVO",
    "domicilio": "Calle 1",
    "provincia": "Santa Fe",
    "codigopostal": "2000",
}

PADRON_CUIL_ERROR = {
    "error": "S",
    "errores": [
        [
            "No se pudo obtener los datos del padron. error: PEREZ GARCIA MARIA VICTORIA - La clave no registra impuestos activos"
        ]
    ],
}


def _response(payload: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class InformacionFiscalTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        app = create_app()
        app.dependency_overrides[get_db_client] = lambda: self.db
        self.client = TestClient(app)

    def test_save_and_get(self):
        response = self.client.post(
            "/api/informacion-fiscal",
            json={"uid": "u1", "rol": "prestador", "perfil": PERFIL},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"ok": True})

        stored = self.db.documents["users/u1/informacionFiscal/current"]
        self.assertEqual(stored["rol"], "prestador")
        self.assertNotIn("cuit", stored["perfil"])

        response = self.client.get("/api/informacion-fiscal/u1")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["perfil"]["razonSocial"], "PEREZ ANA")

    def test_get_missing_profile(self):
        response = self.client.get("/api/informacion-fiscal/nadie")
        self.assertEqual(response.status_code, 404)
        self.assertTrue(response.json()["error"])

    def test_invalid_payloads(self):
        invalid = [
            {"perfil": PERFIL},
            {"uid": "   ", "perfil": PERFIL},
            {"uid": "u1", "perfil": {**PERFIL, "cuitGuardado": "20123456789"}},
            {"uid": "u1", "perfil": {**PERFIL, "viaVerificacion": "manual"}},
            {"uid": "u1", "perfil": {k: v for k, v in PERFIL.items() if k != "emailReceptor"}},
            {"uid": "u1", "perfil": PERFIL, "rol": "admin"},
        ]
        for body in invalid:
            response = self.client.post("/api/informacion-fiscal", json=body)
            self.assertEqual(response.status_code, 400, body)
            self.assertEqual(response.json()["error"], True)
            self.assertIn("Payload inválido", response.json()["message"])
        self.assertEqual(self.db.documents, {})


class VerificarCuitTests(unittest.TestCase):
    def setUp(self):
        self.tusfacturas = TusFacturasClient(
            api_key="key", api_token="token", user_token="user"
        )
        self.app = create_app()
        self.app.dependency_overrides[get_tusfacturas_client] = lambda: self.tusfacturas
        self.client = TestClient(self.app)

    def _post(self, **body):
        payload = {"cuit": "20-12345678-9", "nombre": "Ana", "apellido": "Pérez"}
        payload.update(body)
        return self.client.post("/api/verificar-cuit", json=payload)

    def test_missing_fields(self):
        response = self._post(apellido=" ")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {"error": True, "message": "Faltan datos requeridos (cuit, nombre, apellido)."},
        )

    def test_short_cuit(self):
        response = self._post(cuit="12-34")
        self.assertEqual(response.status_code, 422)

    def test_missing_credentials(self):
        self.app.dependency_overrides[get_tusfacturas_client] = lambda: None
        response = self._post()
        self.assertEqual(response.status_code, 500)

    @patch("backend.tusfacturas.requests.post")
    def test_verified(self, post_mock):
        post_mock.return_value = _response(PADRON_OK)
        response = self._post()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertFalse(body["error"])
        self.assertEqual(body["data"]["cuit"], "20123456789")
        self.assertEqual(body["data"]["condicionImpositiva"], "MONOTRIBUTO")
        self.assertEqual(body["data"]["condicionIVA"], "MT")
        self.assertEqual(body["data"]["source"], "ARCA")

        sent = post_mock.call_args.kwargs["json"]
        self.assertEqual(sent["cliente"], {"documento_tipo": "CUIT", "documento_nro": "20123456789"})

    @patch("backend.tusfacturas.requests.post")
    def test_name_mismatch(self, post_mock):
        post_mock.return_value = _response(PADRON_OK)
        response = self._post(nombre="Juan", apellido="Gómez")
        self.assertEqual(response.status_code, 401)

    @patch("backend.tusfacturas.requests.post")
    def test_provider_error_includes_parsed_name(self, post_mock):
        post_mock.return_value = _response(PADRON_CUIL_ERROR)
        response = self._post()
        self.assertEqual(response.status_code, 502)
        body = response.json()
        self.assertTrue(body["error"])
        self.assertEqual(body["nombreAfip"]["apellido"], "PEREZ")
        self.assertEqual(body["nombreAfip"]["apellido2"], "GARCIA")
        self.assertEqual(body["nombreAfip"]["nombres"], "MARIA VICTORIA")

    @patch("backend.tusfacturas.requests.post")
    def test_transport_error(self, post_mock):
        post_mock.side_effect = requests.ConnectionError("down")
        response = self._post()
        self.assertEqual(response.status_code, 500)


class TusFacturasHelpersTests(unittest.TestCase):
    def test_flatten_errores(self):
        self.assertEqual(
            tusfacturas.flatten_errores([["a", ["b"]], "c", 3]), ["a", "b", "c"]
        )
        self.assertEqual(tusfacturas.flatten_errores(None), [])

    def test_map_condicion_impositiva(self):
        self.assertEqual(
            tusfacturas.map_condicion_impositiva("Responsable Inscripto"),
            "RESPONSABLE_INSCRIPTO",
        )
        self.assertEqual(tusfacturas.map_condicion_impositiva(None), "NO_CATEGORIZADO")
        self.assertEqual(tusfacturas.condicion_iva_para("NO_CATEGORIZADO"), "NR")

    def test_nombre_coincide(self):
        self.assertTrue(tusfacturas.nombre_coincide("José", "Pérez", "PEREZ JOSE LUIS"))
        self.assertTrue(tusfacturas.nombre_coincide("Ana María", "Paz", "PAZ ANA MARIA"))
        self.assertFalse(tusfacturas.nombre_coincide("Ana", "Paz", "PEREZ JOSE"))
        self.assertFalse(tusfacturas.nombre_coincide("", "", "PEREZ JOSE"))

    def test_parse_nombre_short_name(self):
        parsed = tusfacturas.parse_nombre_desde_error(
            "Error: LOPEZ JUAN - La clave no registra impuestos"
        )
        self.assertEqual(parsed["apellido"], "LOPEZ")
        self.assertEqual(parsed["nombres"], "JUAN")
        self.assertNotIn("apellido2", parsed)

    def test_parse_nombre_without_name(self):
        self.assertIsNone(tusfacturas.parse_nombre_desde_error({"errores": []}))
        self.assertIsNone(tusfacturas.parse_nombre_desde_error(None))


if __name__ == "__main__":
    unittest.main()
