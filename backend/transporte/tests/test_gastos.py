from datetime import date
from decimal import Decimal

from transporte.services.reports import resumo_gastos
from transporte.models import Gasto
from transporte.tests.base import APITestBase
from transporte.tests.factories import make_gasto, make_veiculo, set_plano


class GastoTests(APITestBase):
    def setUp(self):
        super().setUp()
        set_plano(self.motorista, "essencial")
        self.veiculo = make_veiculo(self.motorista, placa="ABC1234")

    def test_cria_gasto_do_veiculo(self):
        response = self.client.post(
            "/api/gastos/",
            {
                "valor": "250.00",
                "data": "2025-03-10",
                "categoria": "combustivel",
                "veiculo_id": self.veiculo.id,
                "descricao": "Abastecimento",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["veiculo_placa"], "ABC1234")
        self.assertEqual(response.data["categoria_display"], "Combustível")

    def test_valor_deve_ser_positivo(self):
        response = self.client.post(
            "/api/gastos/", {"valor": "0", "data": "2025-03-10", "categoria": "outros"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("valor", response.data)

    def test_veiculo_de_outro_motorista(self):
        veiculo_b = make_veiculo(self.motorista_b)
        response = self.client.post(
            "/api/gastos/",
            {"valor": "50.00", "data": "2025-03-10", "categoria": "outros", "veiculo_id": veiculo_b.id},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_filtros_de_mes_e_categoria(self):
        make_gasto(self.motorista, categoria="combustivel", data=date(2025, 3, 1))
        make_gasto(self.motorista, categoria="manutencao", data=date(2025, 3, 2))
        make_gasto(self.motorista, categoria="combustivel", data=date(2025, 4, 1))
        make_gasto(self.motorista_b, categoria="combustivel", data=date(2025, 3, 1))

        response = self.client.get("/api/gastos/?mes=3&ano=2025&categoria=combustivel")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(self.results(response)), 1)

    def test_resumo(self):
        make_gasto(self.motorista, valor="300.00", categoria="combustivel", data=date(2025, 3, 1), veiculo=self.veiculo)
        make_gasto(self.motorista, valor="100.00", categoria="combustivel", data=date(2025, 3, 5))
        make_gasto(self.motorista, valor="150.00", categoria="manutencao", data=date(2025, 3, 8))

        response = self.client.get("/api/gastos/resumo/?mes=3&ano=2025")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["total"], Decimal("550.00"))
        self.assertEqual(response.data["quantidade"], 3)
        self.assertEqual(response.data["categoria_principal"]["categoria"], "combustivel")
        self.assertEqual(response.data["categoria_principal"]["total"], Decimal("400.00"))
        self.assertEqual(response.data["media_diaria"], Decimal("17.74"))

        placas = {row["placa"]: row["total"] for row in response.data["por_veiculo"]}
        self.assertEqual(placas["ABC1234"], Decimal("300.00"))
        self.assertEqual(placas["Sem veículo"], Decimal("250.00"))


class ResumoGastosTests(APITestBase):
    def test_sem_gastos(self):
        resumo = resumo_gastos(Gasto.objects.filter(motorista=self.motorista), 3, 2025)
        self.assertEqual(resumo["total"], Decimal("0.00"))
        self.assertIsNone(resumo["categoria_principal"])
        self.assertEqual(resumo["media_diaria"], Decimal("0.00"))
