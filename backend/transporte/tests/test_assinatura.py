import json
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import requests
from django.utils import timezone

from transporte.helpers.datas import add_one_month_safe
from transporte.models import AssinaturaCobranca, AssinaturaMotorista, Passageiro, Plano
from transporte.services import assinatura as assinatura_service
from transporte.tests.base import APITestBase
from transporte.tests.factories import make_assinatura_cobranca, make_passageiro, set_plano

PIX_OK = {
    "id": "pay_ass_1",
    "invoiceUrl": "https://asaas.test/i/pay_ass_1",
    "status": "PENDING",
}
QR_OK = {"encodedImage": "", "payload": "00020126assinatura", "expirationDate": "2025-04-30 23:59:59"}


def _http_error(status_code, description):
    response = requests.models.Response()
    response.status_code = status_code
    response._content = json.dumps({"errors": [{"description": description}]}).encode()
    return requests.exceptions.HTTPError(response=response)


class IniciarPlanoTests(APITestBase):
    def test_gratuito_aplica_direto(self):
        cobranca = assinatura_service.iniciar_plano(self.motorista.assinatura, Plano.objects.get(slug="gratuito"))
        self.assertIsNone(cobranca)
        self.assertEqual(self.motorista.assinatura.status, "ativa")

    def test_essencial_comeca_em_trial(self):
        assinatura = self.motorista.assinatura
        cobranca = assinatura_service.iniciar_plano(assinatura, Plano.objects.get(slug="essencial"))

        self.assertIsNone(cobranca)
        assinatura.refresh_from_db()
        self.assertEqual(assinatura.status, "trial")
        self.assertEqual(assinatura.plano.slug, "essencial")
        self.assertEqual(assinatura.dias_trial_restantes, 6)
        self.assertTrue(assinatura.acesso_permitido)

    def test_profissional_gera_cobranca_de_ativacao(self):
        assinatura = self.motorista.assinatura
        cobranca = assinatura_service.iniciar_plano(assinatura, Plano.objects.get(slug="profissional"))

        self.assertEqual(cobranca.billing_type, "activation")
        self.assertEqual(cobranca.valor, Decimal("99.90"))
        self.assertEqual(cobranca.plano.slug, "profissional-25")
        assinatura.refresh_from_db()
        self.assertEqual(assinatura.plano.slug, "gratuito")
        self.assertEqual(assinatura.pending_plano.slug, "profissional-25")

    def test_confirmar_ativacao_aplica_plano_pendente(self):
        assinatura = self.motorista.assinatura
        cobranca = assinatura_service.iniciar_plano(assinatura, Plano.objects.get(slug="profissional"))

        assinatura_service.confirmar_pagamento(cobranca)

        assinatura = AssinaturaMotorista.objects.get(pk=assinatura.pk)
        hoje = timezone.localdate()
        self.assertEqual(assinatura.status, "ativa")
        self.assertEqual(assinatura.plano.slug, "profissional-25")
        self.assertEqual(assinatura.franquia_contratada_cobrancas, 25)
        self.assertEqual(assinatura.valor_mensal, Decimal("99.90"))
        self.assertEqual(assinatura.vigencia_fim, add_one_month_safe(hoje))
        self.assertIsNone(assinatura.pending_plano)

    def test_confirmar_duas_vezes_e_idempotente(self):
        assinatura = self.motorista.assinatura
        cobranca = assinatura_service.iniciar_plano(assinatura, Plano.objects.get(slug="profissional"))
        assinatura_service.confirmar_pagamento(cobranca)
        vigencia = AssinaturaMotorista.objects.get(pk=assinatura.pk).vigencia_fim

        assinatura_service.confirmar_pagamento(cobranca)
        self.assertEqual(AssinaturaMotorista.objects.get(pk=assinatura.pk).vigencia_fim, vigencia)


class TrocaPlanoTests(APITestBase):
    def setUp(self):
        super().setUp()
        self.hoje = timezone.localdate()
        self.assinatura = set_plano(
            self.motorista, "profissional-25", valor_mensal="99.90",
            vigencia_fim=self.hoje + timedelta(days=15),
        )

    def test_aumento_de_franquia_cobra_prorata(self):
        cobranca = assinatura_service.solicitar_troca_plano(self.assinatura, Plano.objects.get(slug="profissional-50"))

        self.assertEqual(cobranca.billing_type, "upgrade")
        self.assertEqual(cobranca.valor, Decimal("30.00"))
        self.assertEqual(cobranca.franquia, 50)

        assinatura_service.confirmar_pagamento(cobranca)
        assinatura = AssinaturaMotorista.objects.get(pk=self.assinatura.pk)
        self.assertEqual(assinatura.plano.slug, "profissional-50")
        self.assertEqual(assinatura.valor_mensal, Decimal("159.90"))
        self.assertEqual(assinatura.vigencia_fim, self.hoje + timedelta(days=15))

    def test_nova_solicitacao_cancela_pendente_anterior(self):
        primeira = assinatura_service.solicitar_troca_plano(self.assinatura, Plano.objects.get(slug="profissional-50"))
        assinatura_service.solicitar_troca_plano(self.assinatura, Plano.objects.get(slug="profissional-90"))

        primeira.refresh_from_db()
        self.assertEqual(primeira.status, "cancelada")
        self.assertEqual(self.assinatura.cobrancas.filter(status="pendente_pagamento").count(), 1)

    def test_mesma_franquia_e_invalida(self):
        with self.assertRaises(assinatura_service.TrocaPlanoInvalida):
            assinatura_service.solicitar_troca_plano(self.assinatura, Plano.objects.get(slug="profissional-25"))

    def test_reducao_de_faixa_desliga_automacao_excedente(self):
        assinatura = set_plano(self.motorista, "profissional-50", valor_mensal="159.90",
                               vigencia_fim=self.hoje + timedelta(days=15))
        for _ in range(27):
            make_passageiro(self.motorista, automatica=True)

        cobranca = assinatura_service.trocar_subplano(assinatura, Plano.objects.get(slug="profissional-25"))

        self.assertIsNone(cobranca)
        self.assertEqual(Passageiro.objects.filter(motorista=self.motorista, enviar_cobranca_automatica=True).count(), 25)
        assinatura.refresh_from_db()
        self.assertEqual(assinatura.franquia_contratada_cobrancas, 25)
        self.assertEqual(assinatura.valor_mensal, Decimal("99.90"))

    def test_downgrade_para_essencial(self):
        make_passageiro(self.motorista, automatica=True)
        pendente = make_assinatura_cobranca(self.assinatura)

        assinatura_service.reduzir_plano(self.assinatura, Plano.objects.get(slug="essencial"))

        self.assinatura.refresh_from_db()
        self.assertEqual(self.assinatura.plano.slug, "essencial")
        self.assertEqual(self.assinatura.franquia_contratada_cobrancas, 0)
        self.assertFalse(Passageiro.objects.filter(motorista=self.motorista, enviar_cobranca_automatica=True).exists())
        pendente.refresh_from_db()
        self.assertEqual(pendente.status, "cancelada")

    def test_downgrade_para_plano_superior_e_invalido(self):
        set_plano(self.motorista, "essencial")
        with self.assertRaises(assinatura_service.TrocaPlanoInvalida):
            assinatura_service.reduzir_plano(self.motorista.assinatura, Plano.objects.get(slug="profissional"))

    def test_personalizado(self):
        with self.assertRaises(assinatura_service.TrocaPlanoInvalida):
            assinatura_service.contratar_personalizado(self.assinatura, 60)

        set_plano(self.motorista, "gratuito")
        cobranca = assinatura_service.contratar_personalizado(self.motorista.assinatura, 120)
        self.assertEqual(cobranca.franquia, 120)
        self.assertEqual(cobranca.valor, Decimal("319.87"))
        self.assertEqual(cobranca.plano.slug, "profissional")

    def test_cancelar_trial_mantem_acesso_ate_o_fim(self):
        fim = timezone.now() + timedelta(days=3)
        assinatura = set_plano(self.motorista, "essencial", status="trial", trial_end_at=fim)

        assinatura_service.cancelar(assinatura)

        assinatura.refresh_from_db()
        self.assertEqual(assinatura.status, "cancelada")
        self.assertEqual(assinatura.vigencia_fim, timezone.localdate(fim))
        self.assertTrue(assinatura.acesso_permitido)

    def test_cancelar_sem_assinatura_ativa(self):
        set_plano(self.motorista, "essencial", status="suspensa")
        with self.assertRaises(assinatura_service.TrocaPlanoInvalida):
            assinatura_service.cancelar(self.motorista.assinatura)

    @patch("transporte.services.assinatura.obter_qr_code_pix_asaas", return_value=QR_OK)
    @patch("transporte.services.assinatura.criar_cobranca_pix_asaas", return_value=PIX_OK)
    @patch("transporte.services.assinatura.criar_cliente_asaas", return_value="cus_mot")
    def test_gerar_pix_reaproveita(self, cliente_mock, pix_mock, qr_mock):
        cobranca = make_assinatura_cobranca(self.assinatura)

        assinatura_service.gerar_pix(cobranca)
        assinatura_service.gerar_pix(cobranca)

        self.assertEqual(pix_mock.call_count, 1)
        self.assertEqual(qr_mock.call_count, 1)
        self.assertEqual(pix_mock.call_args[0][4], f"assinatura-cobranca-{cobranca.id}")
        self.assertEqual(cobranca.qr_code_payload, QR_OK["payload"])
        self.assinatura.refresh_from_db()
        self.assertEqual(self.assinatura.asaas_customer_id, "cus_mot")

    @patch("transporte.services.assinatura.obter_qr_code_pix_asaas")
    @patch("transporte.services.assinatura.criar_cobranca_pix_asaas", return_value=PIX_OK)
    @patch("transporte.services.assinatura.criar_cliente_asaas", return_value="cus_mot")
    def test_gerar_pix_falha_no_qr_code_nao_duplica_pagamento(self, cliente_mock, pix_mock, qr_mock):
        cobranca = make_assinatura_cobranca(self.assinatura)
        qr_mock.side_effect = requests.exceptions.ConnectionError("down")

        with self.assertRaises(requests.exceptions.ConnectionError):
            assinatura_service.gerar_pix(cobranca)
        self.assertEqual(AssinaturaCobranca.objects.get(pk=cobranca.pk).asaas_payment_id, "pay_ass_1")

        qr_mock.side_effect = None
        qr_mock.return_value = QR_OK
        assinatura_service.gerar_pix(AssinaturaCobranca.objects.get(pk=cobranca.pk))

        self.assertEqual(pix_mock.call_count, 1)
        qr_mock.assert_called_with("pay_ass_1")
        self.assertEqual(AssinaturaCobranca.objects.get(pk=cobranca.pk).qr_code_payload, QR_OK["payload"])


class RenovacaoTests(APITestBase):
    def test_abre_renovacao_perto_do_fim(self):
        hoje = timezone.localdate()
        assinatura = set_plano(self.motorista, "essencial", vigencia_fim=hoje + timedelta(days=3))

        resultado = assinatura_service.processar_renovacoes(hoje)
        self.assertEqual(resultado["renovacoes"], 1)
        renovacao = AssinaturaCobranca.objects.get(assinatura=assinatura, billing_type="renewal")
        self.assertEqual(renovacao.valor, Decimal("49.90"))
        self.assertEqual(renovacao.data_vencimento, hoje + timedelta(days=3))

        self.assertEqual(assinatura_service.processar_renovacoes(hoje)["renovacoes"], 0)

    def test_longe_do_fim_nao_abre(self):
        hoje = timezone.localdate()
        set_plano(self.motorista, "essencial", vigencia_fim=hoje + timedelta(days=20))
        self.assertEqual(assinatura_service.processar_renovacoes(hoje)["renovacoes"], 0)

    def test_suspende_com_renovacao_vencida(self):
        hoje = timezone.localdate()
        assinatura = set_plano(self.motorista, "essencial", vigencia_fim=hoje - timedelta(days=1))
        make_assinatura_cobranca(assinatura, valor="49.90", billing_type="renewal")

        resultado = assinatura_service.processar_renovacoes(hoje)
        self.assertEqual(resultado["suspensas"], 1)
        assinatura.refresh_from_db()
        self.assertEqual(assinatura.status, "suspensa")

    def test_pagamento_da_renovacao_estende_vigencia(self):
        hoje = timezone.localdate()
        fim = hoje + timedelta(days=3)
        assinatura = set_plano(self.motorista, "essencial", vigencia_fim=fim)
        assinatura_service.processar_renovacoes(hoje)
        renovacao = assinatura.cobrancas.get(billing_type="renewal")

        assinatura_service.confirmar_pagamento(renovacao)

        assinatura.refresh_from_db()
        self.assertEqual(assinatura.vigencia_fim, add_one_month_safe(fim))
        self.assertEqual(assinatura.plano.slug, "essencial")

    def test_atraso_de_renovacao_suspende(self):
        assinatura = set_plano(self.motorista, "essencial", vigencia_fim=timezone.localdate())
        renovacao = make_assinatura_cobranca(assinatura, billing_type="renewal")

        assinatura_service.marcar_atraso(renovacao)
        assinatura.refresh_from_db()
        self.assertEqual(assinatura.status, "suspensa")


class PlanoViewTests(APITestBase):
    def test_lista_publica_de_planos(self):
        self.unauth()
        response = self.client.get("/api/planos/")
        self.assertEqual(response.status_code, 200)
        slugs = [p["slug"] for p in response.data]
        self.assertEqual(slugs, ["gratuito", "essencial", "profissional"])
        profissional = response.data[2]
        self.assertEqual([s["franquia_cobrancas_mes"] for s in profissional["sub_planos"]], [25, 50, 90])

    def test_preview_de_preco(self):
        self.unauth()
        response = self.client.get("/api/planos/calcular-preco-preview/?quantidade=120")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["preco"], Decimal("319.87"))
        self.assertEqual(response.data["quantidade_minima"], 91)

    def test_preview_quantidade_invalida(self):
        response = self.client.get("/api/planos/calcular-preco-preview/?quantidade=abc")
        self.assertEqual(response.status_code, 400)

    def test_preview_acima_do_maximo(self):
        response = self.client.get("/api/planos/calcular-preco-preview/?quantidade=500")
        self.assertEqual(response.status_code, 200)
        response = self.client.get("/api/planos/calcular-preco-preview/?quantidade=501")
        self.assertEqual(response.status_code, 400)


class AssinaturaViewTests(APITestBase):
    def test_status(self):
        response = self.client.get("/api/assinatura/status/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["plano_base"], "gratuito")
        self.assertIsNone(response.data["cobranca_pendente"])
        self.assertEqual(response.data["acoes"]["passageiros"]["limite"], 10)

    def test_upgrade_cria_cobranca(self):
        response = self.client.post("/api/assinatura/upgrade/", {"plano_slug": "profissional-50"}, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["cobranca"]["valor"], "159.90")
        self.assertEqual(response.data["cobranca"]["billing_type"], "activation")
        self.assertEqual(response.data["assinatura"]["pending_plano"]["slug"], "profissional-50")

    def test_upgrade_plano_inexistente(self):
        response = self.client.post("/api/assinatura/upgrade/", {"plano_slug": "ouro"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_downgrade_invalido(self):
        response = self.client.post("/api/assinatura/downgrade/", {"plano_slug": "profissional"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_trocar_subplano(self):
        set_plano(self.motorista, "profissional-50", vigencia_fim=timezone.localdate() + timedelta(days=10))
        faixa = Plano.objects.get(slug="profissional-25")
        response = self.client.post("/api/assinatura/trocar-subplano/", {"sub_plano_id": faixa.id}, format="json")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["assinatura"]["franquia_contratada_cobrancas"], 25)

    def test_personalizado_abaixo_do_minimo(self):
        response = self.client.post("/api/assinatura/personalizado/", {"quantidade": 40}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_personalizado_e_upgrade_acima_do_maximo(self):
        response = self.client.post("/api/assinatura/personalizado/", {"quantidade": 501}, format="json")
        self.assertEqual(response.status_code, 400)
        response = self.client.post(
            "/api/assinatura/upgrade/", {"plano_slug": "profissional", "quantidade": 1000}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(AssinaturaCobranca.objects.filter(assinatura__motorista=self.motorista).exists())

    def test_cancelar(self):
        set_plano(self.motorista, "essencial", vigencia_fim=timezone.localdate() + timedelta(days=10))
        response = self.client.post("/api/assinatura/cancelar/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "cancelada")
        self.assertTrue(response.data["acesso_permitido"])


class AssinaturaCobrancaViewTests(APITestBase):
    def setUp(self):
        super().setUp()
        self.cobranca = make_assinatura_cobranca(self.motorista.assinatura)

    def test_lista_apenas_do_proprio_motorista(self):
        make_assinatura_cobranca(self.motorista_b.assinatura)
        response = self.client.get("/api/assinatura-cobrancas/")
        self.assertEqual([c["id"] for c in self.results(response)], [self.cobranca.id])

    @patch("transporte.services.assinatura.obter_qr_code_pix_asaas", return_value=QR_OK)
    @patch("transporte.services.assinatura.criar_cobranca_pix_asaas", return_value=PIX_OK)
    @patch("transporte.services.assinatura.criar_cliente_asaas", return_value="cus_mot")
    def test_gerar_pix(self, cliente_mock, pix_mock, qr_mock):
        response = self.client.post(f"/api/assinatura-cobrancas/{self.cobranca.id}/gerar-pix/")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["qr_code_payload"], QR_OK["payload"])

    @patch("transporte.services.assinatura.criar_cliente_asaas",
           side_effect=_http_error(400, "CPF/CNPJ do cliente é inválido."))
    def test_gerar_pix_rejeitado_pelo_gateway(self, cliente_mock):
        response = self.client.post(f"/api/assinatura-cobrancas/{self.cobranca.id}/gerar-pix/")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["detail"], "CPF/CNPJ do cliente é inválido.")

    @patch("transporte.services.assinatura.criar_cliente_asaas",
           side_effect=requests.exceptions.ConnectionError("down"))
    def test_gerar_pix_gateway_fora(self, cliente_mock):
        response = self.client.post(f"/api/assinatura-cobrancas/{self.cobranca.id}/gerar-pix/")
        self.assertEqual(response.status_code, 503)

    def test_gerar_pix_de_cobranca_paga(self):
        self.cobranca.status = "pago"
        self.cobranca.save()
        response = self.client.post(f"/api/assinatura-cobrancas/{self.cobranca.id}/gerar-pix/")
        self.assertEqual(response.status_code, 400)

    @patch("transporte.views.subscription.consultar_cobranca_asaas", return_value={"id": "pay_x", "status": "RECEIVED"})
    def test_status_confirma_pagamento(self, consultar_mock):
        plano = Plano.objects.get(slug="profissional-25")
        self.cobranca.plano = plano
        self.cobranca.franquia = 25
        self.cobranca.asaas_payment_id = "pay_x"
        self.cobranca.save()

        response = self.client.get(f"/api/assinatura-cobrancas/{self.cobranca.id}/status/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "pago")
        assinatura = AssinaturaMotorista.objects.get(motorista=self.motorista)
        self.assertEqual(assinatura.plano, plano)
        self.assertEqual(assinatura.franquia_contratada_cobrancas, 25)
