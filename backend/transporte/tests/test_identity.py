from unittest.mock import patch

from django.contrib.auth.tokens import default_token_generator
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from requests.exceptions import ConnectionError as RequestsConnectionError

from transporte.helpers.emails import email_verification_token
from transporte.models import Usuario
from transporte.tests.base import APITestBase
from transporte.tests.factories import make_usuario


class MotoristaPerfilTests(APITestBase):
    def test_get_me(self):
        response = self.client.get("/api/motoristas/me/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["nome"], "Motorista A")

    def test_lista_de_motoristas_so_para_admin(self):
        response = self.client.get("/api/motoristas/")
        self.assertEqual(response.status_code, 403)

    def test_atualiza_chave_pix_normalizada(self):
        response = self.client.patch(
            "/api/motoristas/me/",
            {"tipo_chave_pix": "TELEFONE", "chave_pix": "(11) 97777-6666"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["chave_pix"], "11977776666")

    def test_chave_pix_invalida(self):
        response = self.client.patch(
            "/api/motoristas/me/", {"tipo_chave_pix": "CPF", "chave_pix": "123"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("chave_pix", response.data)

    def test_chave_sem_tipo(self):
        response = self.client.patch("/api/motoristas/me/", {"chave_pix": "a@b.com"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("tipo_chave_pix", response.data)

    @patch("transporte.views.identity.atualizar_cliente_asaas", side_effect=RequestsConnectionError("down"))
    def test_sincroniza_cliente_do_gateway_sem_falhar(self, atualizar_mock):
        assinatura = self.motorista.assinatura
        assinatura.asaas_customer_id = "cus_mot"
        assinatura.save()

        response = self.client.patch("/api/motoristas/me/", {"nome": "Motorista Renomeado"}, format="json")
        self.assertEqual(response.status_code, 200)
        atualizar_mock.assert_called_once()


class ConfiguracaoTests(APITestBase):
    def test_configuracao_padrao_criada_com_o_motorista(self):
        response = self.client.get("/api/configuracoes/me/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["dias_antes_vencimento"], 3)
        self.assertEqual(response.data["dias_apos_vencimento"], 3)

    def test_atualiza_lembretes(self):
        response = self.client.patch(
            "/api/configuracoes/me/",
            {"dias_antes_vencimento": 5, "horario_envio": "07:30"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["horario_envio"], "07:30:00")

    def test_intervalo_de_atraso_invalido(self):
        response = self.client.patch("/api/configuracoes/me/", {"dias_apos_vencimento": 0}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_mensagem_com_campo_desconhecido(self):
        for template in ("Valor: {0}", "Oi {passageiro_nome}"):
            response = self.client.patch(
                "/api/configuracoes/me/", {"mensagem_lembrete_dia": template}, format="json"
            )
            self.assertEqual(response.status_code, 400, template)
            self.assertIn("mensagem_lembrete_dia", response.data)

    def test_mensagem_com_chave_solta_e_aceita(self):
        response = self.client.patch(
            "/api/configuracoes/me/", {"mensagem_lembrete_atraso": "Oi {responsavel} :-}"}, format="json"
        )
        self.assertEqual(response.status_code, 200, response.data)


class UsuarioTests(APITestBase):
    def test_lista_usuarios_do_mesmo_motorista(self):
        make_usuario(self.motorista, username="auxiliar")
        response = self.client.get("/api/usuarios/")
        usernames = [u["username"] for u in self.results(response)]
        self.assertEqual(usernames, ["user_a", "auxiliar"])

    def test_alterar_senha(self):
        response = self.client.post(
            "/api/usuarios/alterar-senha/",
            {"senha_atual": self.password, "nova_senha": "NovaSenha@2025"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("NovaSenha@2025"))

    def test_alterar_senha_com_senha_atual_errada(self):
        response = self.client.post(
            "/api/usuarios/alterar-senha/",
            {"senha_atual": "errada", "nova_senha": "NovaSenha@2025"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("senha_atual", response.data)


class EmailFlowTests(APITestBase):
    def setUp(self):
        super().setUp()
        self.user.email = "a@motorista.com"
        self.user.save()
        self.uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        self.unauth()

    @patch("transporte.views.identity.enviar_reset_senha")
    def test_reset_nao_revela_email(self, enviar_mock):
        response = self.client.post("/api/password-reset/", {"email": "naoexiste@x.com"}, format="json")
        self.assertEqual(response.status_code, 200)
        enviar_mock.assert_not_called()

        response = self.client.post("/api/password-reset/", {"email": "A@Motorista.com"}, format="json")
        self.assertEqual(response.status_code, 200)
        enviar_mock.assert_called_once_with(self.user)

    def test_confirmar_reset(self):
        token = default_token_generator.make_token(self.user)
        response = self.client.post(
            "/api/password-reset/confirm/",
            {"uid": self.uid, "token": token, "password": "OutraSenha@1"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        user = Usuario.objects.get(pk=self.user.pk)
        self.assertTrue(user.check_password("OutraSenha@1"))
        self.assertTrue(user.is_email_verified)

    def test_confirmar_reset_token_invalido(self):
        response = self.client.post(
            "/api/password-reset/confirm/",
            {"uid": self.uid, "token": "abc-123", "password": "OutraSenha@1"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_verificar_email_devolve_tokens(self):
        token = email_verification_token.make_token(self.user)
        response = self.client.post("/api/verify-email/", {"uid": self.uid, "token": token}, format="json")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertIn("access", response.data)
        self.assertTrue(Usuario.objects.get(pk=self.user.pk).is_email_verified)

        # token expira depois de usado
        response = self.client.post("/api/verify-email/", {"uid": self.uid, "token": token}, format="json")
        self.assertEqual(response.status_code, 400)
