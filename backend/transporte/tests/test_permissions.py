from datetime import timedelta

from django.utils import timezone

from transporte.models import AssinaturaMotorista
from transporte.tests.base import APITestBase
from transporte.tests.factories import make_escola, make_passageiro, set_plano


class SubscriptionPermissionTests(APITestBase):
    def test_trial_expirado_retorna_402(self):
        set_plano(self.motorista, "essencial", status="trial", trial_end_at=timezone.now() - timedelta(days=1))

        response = self.jwt_client().get("/api/escolas/")
        self.assertEqual(response.status_code, 402)

    def test_assinatura_suspensa_retorna_402(self):
        set_plano(self.motorista, "essencial", status="suspensa")

        response = self.jwt_client().get("/api/passageiros/")
        self.assertEqual(response.status_code, 402)

    def test_sem_assinatura_retorna_402(self):
        AssinaturaMotorista.objects.filter(motorista=self.motorista).delete()
        response = self.jwt_client().get("/api/escolas/")
        self.assertEqual(response.status_code, 402)

    def test_cancelada_dentro_da_vigencia_mantem_acesso(self):
        set_plano(
            self.motorista, "essencial", status="cancelada",
            vigencia_fim=timezone.localdate() + timedelta(days=5),
        )
        response = self.jwt_client().get("/api/escolas/")
        self.assertEqual(response.status_code, 200)

    def test_assinatura_bloqueada_ainda_acessa_tela_de_assinatura(self):
        set_plano(self.motorista, "essencial", status="suspensa")
        response = self.jwt_client().get("/api/assinatura/status/")
        self.assertEqual(response.status_code, 200)

    def test_superuser_ignora_assinatura(self):
        admin = self.user
        admin.is_superuser = True
        admin.is_staff = True
        admin.motorista = None
        admin.save(update_fields=["is_superuser", "is_staff", "motorista"])
        self.auth_as(admin)

        response = self.client.get("/api/escolas/")
        self.assertEqual(response.status_code, 200)

    def test_sem_autenticacao_retorna_401(self):
        self.unauth()
        response = self.client.get("/api/escolas/")
        self.assertEqual(response.status_code, 401)


class FeaturePermissionTests(APITestBase):
    def test_gastos_bloqueado_no_gratuito(self):
        response = self.client.get("/api/gastos/")
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data["feature"], "gastos")
        self.assertEqual(response.data["opcoes"], ["upgrade"])

    def test_gastos_liberado_no_essencial(self):
        set_plano(self.motorista, "essencial")
        response = self.client.get("/api/gastos/")
        self.assertEqual(response.status_code, 200)

    def test_relatorios_bloqueado_no_gratuito(self):
        response = self.client.get("/api/relatorios/")
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data["feature"], "relatorios")

    def test_whatsapp_exige_profissional(self):
        set_plano(self.motorista, "essencial")
        response = self.client.post("/api/whatsapp/conectar/")
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data["feature"], "notificacoes")


class MotoristaScopedTests(APITestBase):
    def test_lista_apenas_do_proprio_motorista(self):
        make_escola(self.motorista, nome="Escola A Unica")
        make_escola(self.motorista_b, nome="Escola B Unica")

        response = self.client.get("/api/escolas/")
        self.assertEqual(response.status_code, 200)
        nomes = [item["nome"] for item in self.results(response)]

        self.assertIn("Escola A Unica", nomes)
        self.assertNotIn("Escola B Unica", nomes)

    def test_detalhe_de_outro_motorista_retorna_404(self):
        passageiro_b = make_passageiro(self.motorista_b)
        response = self.client.get(f"/api/passageiros/{passageiro_b.id}/")
        self.assertEqual(response.status_code, 404)

    def test_create_injeta_motorista(self):
        response = self.client.post("/api/escolas/", {"nome": "Escola Nova"}, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        escola = self.motorista.escolas.get(nome="Escola Nova")
        self.assertEqual(escola.id, response.data["id"])
