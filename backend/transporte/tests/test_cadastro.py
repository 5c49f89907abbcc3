from django.utils import timezone

from transporte.models import Cobranca, Passageiro, PrePassageiro, Veiculo
from transporte.tests.base import APITestBase
from transporte.tests.factories import (
    make_cobranca,
    make_escola,
    make_passageiro,
    make_pre_passageiro,
    make_veiculo,
    set_plano,
)


def _payload_passageiro(**extra):
    payload = {
        "nome": "Joana Silva",
        "nome_responsavel": "Maria Silva",
        "telefone_responsavel": "(11) 91234-5678",
        "valor_cobranca": "350.00",
        "dia_vencimento": 5,
    }
    payload.update(extra)
    return payload


class PassageiroCadastroTests(APITestBase):
    def test_cria_passageiro_no_plano_gratuito(self):
        escola = make_escola(self.motorista)
        response = self.client.post(
            "/api/passageiros/", _payload_passageiro(escola_id=escola.id), format="json"
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["escola_nome"], escola.nome)
        self.assertEqual(response.data["telefone_responsavel"], "11912345678")
        self.assertTrue(response.data["ativo"])

    def test_escola_de_outro_motorista_e_rejeitada(self):
        escola_b = make_escola(self.motorista_b)
        response = self.client.post(
            "/api/passageiros/", _payload_passageiro(escola_id=escola_b.id), format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("escola_id", response.data)

    def test_dia_vencimento_invalido(self):
        response = self.client.post("/api/passageiros/", _payload_passageiro(dia_vencimento=32), format="json")
        self.assertEqual(response.status_code, 400)

    def test_limite_do_plano_gratuito_retorna_402(self):
        for _ in range(10):
            make_passageiro(self.motorista)

        response = self.client.post("/api/passageiros/", _payload_passageiro(), format="json")
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data["feature"], "limite_passageiros")
        self.assertEqual(response.data["opcoes"], ["upgrade"])

    def test_inativos_nao_contam_no_limite(self):
        for _ in range(10):
            make_passageiro(self.motorista, ativo=False)

        response = self.client.post("/api/passageiros/", _payload_passageiro(), format="json")
        self.assertEqual(response.status_code, 201, response.data)

    def test_cobranca_automatica_exige_profissional(self):
        set_plano(self.motorista, "essencial")
        response = self.client.post(
            "/api/passageiros/", _payload_passageiro(enviar_cobranca_automatica=True), format="json"
        )
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data["feature"], "cobranca_automatica")

    def test_franquia_esgotada_retorna_402(self):
        set_plano(self.motorista, "profissional-25")
        for _ in range(25):
            make_passageiro(self.motorista, automatica=True)

        response = self.client.post(
            "/api/passageiros/", _payload_passageiro(enviar_cobranca_automatica=True), format="json"
        )
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data["feature"], "limite_franquia")

    def test_cria_automatico_dentro_da_franquia(self):
        set_plano(self.motorista, "profissional-25")
        response = self.client.post(
            "/api/passageiros/", _payload_passageiro(enviar_cobranca_automatica=True), format="json"
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertTrue(response.data["enviar_cobranca_automatica"])

    def test_emitir_cobranca_do_mes_atual(self):
        set_plano(self.motorista, "essencial")
        response = self.client.post(
            "/api/passageiros/", _payload_passageiro(emitir_cobranca_mes_atual=True), format="json"
        )
        self.assertEqual(response.status_code, 201, response.data)

        hoje = timezone.localdate()
        cobranca = Cobranca.objects.get(passageiro_id=response.data["id"])
        self.assertEqual((cobranca.mes, cobranca.ano), (hoje.month, hoje.year))
        self.assertEqual(cobranca.origem, "manual")
        self.assertEqual(str(cobranca.valor), "350.00")

    def test_ativar_automacao_na_edicao_valida_plano(self):
        passageiro = make_passageiro(self.motorista)
        response = self.client.patch(
            f"/api/passageiros/{passageiro.id}/", {"enviar_cobranca_automatica": True}, format="json"
        )
        self.assertEqual(response.status_code, 402)


class PassageiroAcoesTests(APITestBase):
    def test_toggle_ativo_desativa(self):
        passageiro = make_passageiro(self.motorista)
        response = self.client.post(f"/api/passageiros/{passageiro.id}/toggle-ativo/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["ativo"])

    def test_reativar_automatico_sem_vaga_retorna_opcoes(self):
        set_plano(self.motorista, "profissional-25")
        for _ in range(25):
            make_passageiro(self.motorista, automatica=True)
        inativo = make_passageiro(self.motorista, ativo=False, automatica=True)

        response = self.client.post(f"/api/passageiros/{inativo.id}/toggle-ativo/")
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data["feature"], "limite_franquia")
        self.assertEqual(response.data["opcoes"], ["upgrade", "reativar_sem_automacao"])

    def test_reativar_sem_automacao(self):
        set_plano(self.motorista, "profissional-25")
        for _ in range(25):
            make_passageiro(self.motorista, automatica=True)
        inativo = make_passageiro(self.motorista, ativo=False, automatica=True)

        response = self.client.post(
            f"/api/passageiros/{inativo.id}/toggle-ativo/", {"desativar_automacao": True}, format="json"
        )
        self.assertEqual(response.status_code, 200, response.data)
        inativo.refresh_from_db()
        self.assertTrue(inativo.ativo)
        self.assertFalse(inativo.enviar_cobranca_automatica)

    def test_reativar_respeita_limite_de_passageiros(self):
        for _ in range(10):
            make_passageiro(self.motorista)
        inativo = make_passageiro(self.motorista, ativo=False)

        response = self.client.post(f"/api/passageiros/{inativo.id}/toggle-ativo/")
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data["feature"], "limite_passageiros")

    def test_toggle_cobranca_automatica(self):
        set_plano(self.motorista, "profissional-25")
        passageiro = make_passageiro(self.motorista)

        response = self.client.post(f"/api/passageiros/{passageiro.id}/toggle-cobranca-automatica/")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["enviar_cobranca_automatica"])

        response = self.client.post(f"/api/passageiros/{passageiro.id}/toggle-cobranca-automatica/")
        self.assertFalse(response.data["enviar_cobranca_automatica"])

    def test_contagem_e_filtros(self):
        escola = make_escola(self.motorista)
        make_passageiro(self.motorista, escola=escola)
        make_passageiro(self.motorista, ativo=False)
        make_passageiro(self.motorista_b)

        response = self.client.get("/api/passageiros/contagem/")
        self.assertEqual(response.data["total"], 2)
        self.assertEqual(response.data["ativos"], 1)
        self.assertEqual(response.data["inativos"], 1)

        response = self.client.get(f"/api/passageiros/?escola_id={escola.id}")
        self.assertEqual(len(self.results(response)), 1)

    def test_limites_do_plano(self):
        make_passageiro(self.motorista)
        response = self.client.get("/api/passageiros/limites/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["plano"], "gratuito")
        self.assertEqual(response.data["passageiros"]["limite"], 10)
        self.assertEqual(response.data["passageiros"]["restantes"], 9)
        self.assertFalse(response.data["features"]["cobranca_automatica"])
        self.assertTrue(response.data["opcoes_upgrade"][0]["recomendado"])


class ResponsavelLookupTests(APITestBase):
    URL = "/api/passageiros/responsavel/lookup/"
    CPF = "52998224725"

    def _com_responsavel(self, motorista, nome_responsavel, cpf=CPF):
        passageiro = make_passageiro(motorista)
        passageiro.cpf_responsavel = cpf
        passageiro.nome_responsavel = nome_responsavel
        passageiro.email_responsavel = "resp@familia.com"
        passageiro.save()
        return passageiro

    def test_retorna_passageiros_e_cobrancas(self):
        irmao = self._com_responsavel(self.motorista, "Maria Silva")
        irma = self._com_responsavel(self.motorista, "Maria S. Souza")
        make_cobranca(irmao, mes=2, ano=2025)
        make_cobranca(irmao, mes=3, ano=2025)
        make_passageiro(self.motorista)

        response = self.client.get(self.URL, {"cpf": "529.982.247-25"})

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["nome_responsavel"], "Maria S. Souza")
        self.assertEqual(response.data["email_responsavel"], "resp@familia.com")
        por_id = {p["id"]: p for p in response.data["passageiros"]}
        self.assertEqual(set(por_id), {irmao.id, irma.id})
        self.assertEqual([c["mes"] for c in por_id[irmao.id]["cobrancas"]], [3, 2])
        self.assertEqual(por_id[irma.id]["cobrancas"], [])

    def test_nao_enxerga_responsavel_de_outro_motorista(self):
        self._com_responsavel(self.motorista_b, "Maria Silva")
        response = self.client.get(self.URL, {"cpf": self.CPF})
        self.assertEqual(response.status_code, 404)

    def test_cpf_invalido(self):
        for cpf in ("", "123", "11111111111"):
            response = self.client.get(self.URL, {"cpf": cpf})
            self.assertEqual(response.status_code, 400, cpf)

    def test_somente_leitura(self):
        response = self.client.post(self.URL, {"cpf": self.CPF}, format="json")
        self.assertEqual(response.status_code, 405)


class VeiculoTests(APITestBase):
    def test_placa_normalizada(self):
        response = self.client.post("/api/veiculos/", {"placa": "abc-1234", "modelo": "Sprinter"}, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["placa"], "ABC1234")
        self.assertEqual(response.data["placa_formatada"], "ABC-1234")

    def test_placa_invalida(self):
        response = self.client.post("/api/veiculos/", {"placa": "12-ABCD"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("placa", response.data)

    def test_placa_duplicada_no_mesmo_motorista(self):
        make_veiculo(self.motorista, placa="BRA2E19")
        response = self.client.post("/api/veiculos/", {"placa": "bra2e19"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_mesma_placa_em_outro_motorista(self):
        make_veiculo(self.motorista_b, placa="BRA2E19")
        response = self.client.post("/api/veiculos/", {"placa": "BRA2E19"}, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(Veiculo.objects.filter(placa="BRA2E19").count(), 2)

    def test_ano_modelo_anterior_a_fabricacao(self):
        response = self.client.post(
            "/api/veiculos/", {"placa": "ABC1234", "ano_fabricacao": 2020, "ano_modelo": 2019}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("ano_modelo", response.data)


class EscolaTests(APITestBase):
    def test_endereco_incompleto(self):
        response = self.client.post(
            "/api/escolas/", {"nome": "Escola Centro", "cep": "01310-100"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("logradouro", response.data)

    def test_com_contagem_de_passageiros(self):
        escola = make_escola(self.motorista)
        make_passageiro(self.motorista, escola=escola)
        make_passageiro(self.motorista, escola=escola, ativo=False)

        response = self.client.get("/api/escolas/com-contagem/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.results(response)[0]["passageiros_ativos_count"], 1)


class PreCadastroTests(APITestBase):
    def test_formulario_publico(self):
        make_escola(self.motorista, nome="Escola Aberta")
        make_escola(self.motorista, nome="Escola Fechada", ativo=False)
        self.unauth()

        response = self.client.get(f"/api/pre-cadastro/{self.motorista.id}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["motorista"], "Motorista A")
        self.assertEqual([e["nome"] for e in response.data["escolas"]], ["Escola Aberta"])

    def test_responsavel_envia_pre_cadastro(self):
        self.unauth()
        response = self.client.post(
            f"/api/pre-cadastro/{self.motorista.id}/",
            {"nome": "Pedro", "nome_responsavel": "Ana", "telefone_responsavel": "11912345678"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertTrue(PrePassageiro.objects.filter(motorista=self.motorista, nome="Pedro").exists())

    def test_limite_atingido_retorna_403(self):
        for _ in range(10):
            make_passageiro(self.motorista)
        self.unauth()

        response = self.client.post(
            f"/api/pre-cadastro/{self.motorista.id}/",
            {"nome": "Pedro", "nome_responsavel": "Ana"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_motorista_sem_plano_valido_retorna_404(self):
        set_plano(self.motorista, "essencial", status="suspensa")
        self.unauth()
        response = self.client.get(f"/api/pre-cadastro/{self.motorista.id}/")
        self.assertEqual(response.status_code, 404)

    def test_finalizar_converte_em_passageiro(self):
        pre = make_pre_passageiro(self.motorista, nome="Lucas", valor="280.00")

        response = self.client.post(f"/api/pre-passageiros/{pre.id}/finalizar/", {"dia_vencimento": 15}, format="json")
        self.assertEqual(response.status_code, 201, response.data)

        passageiro = Passageiro.objects.get(pk=response.data["id"])
        self.assertEqual(passageiro.nome, "Lucas")
        self.assertEqual(passageiro.dia_vencimento, 15)
        self.assertEqual(str(passageiro.valor_cobranca), "280.00")
        self.assertFalse(PrePassageiro.objects.filter(pk=pre.id).exists())

    def test_finalizar_sem_valor(self):
        pre = make_pre_passageiro(self.motorista)
        response = self.client.post(f"/api/pre-passageiros/{pre.id}/finalizar/", {}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertTrue(PrePassageiro.objects.filter(pk=pre.id).exists())
