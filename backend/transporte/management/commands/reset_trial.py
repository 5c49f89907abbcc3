from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from datetime import timedelta
from requests.exceptions import RequestException

from transporte.models import AssinaturaMotorista, Plano, Usuario
from transporte.asaas_service import cancelar_cobranca_asaas
from transporte.services import entitlements


class Command(BaseCommand):
    help = 'Reseta a assinatura de um motorista para trial limpo, cancelando as faturas pendentes no Asaas.'

    def add_arguments(self, parser):
        parser.add_argument('username', type=str, help='Username (email) do usuário a resetar')
        parser.add_argument(
            '--days', type=int, default=7,
            help='Duração do trial em dias (padrão: 7)'
        )
        parser.add_argument(
            '--plano', type=str, default=entitlements.PLANO_ESSENCIAL,
            help='Slug do plano do trial (padrão: essencial)'
        )

    def handle(self, *args, **options):
        username = options['username']
        days = options['days']

        try:
            user = Usuario.objects.get(username=username)
        except Usuario.DoesNotExist:
            raise CommandError(f'Usuário "{username}" não encontrado.')

        try:
            assinatura = AssinaturaMotorista.objects.get(motorista=user.motorista)
        except AssinaturaMotorista.DoesNotExist:
            raise CommandError(f'AssinaturaMotorista não encontrada para "{username}".')

        try:
            plano = Plano.objects.get(slug=options['plano'], ativo=True)
        except Plano.DoesNotExist:
            raise CommandError(f'Plano "{options["plano"]}" não encontrado.')

        self.stdout.write(f'Status atual: {assinatura.status}')
        self.stdout.write(f'Plano atual: {assinatura.plano}')

        # Cancela as faturas pendentes no Asaas
        for cobranca in assinatura.cobrancas.filter(status='pendente_pagamento'):
            if cobranca.asaas_payment_id:
                try:
                    cancelar_cobranca_asaas(cobranca.asaas_payment_id)
                    self.stdout.write(self.style.SUCCESS(f'  Cancelada no Asaas: {cobranca.asaas_payment_id}'))
                except RequestException as e:
                    self.stdout.write(self.style.WARNING(f'  Aviso ({cobranca.asaas_payment_id}): {e}'))
            cobranca.status = 'cancelada'
            cobranca.save(update_fields=['status'])

        # Reseta para trial limpo
        assinatura.status = 'trial'
        assinatura.ativo = True
        assinatura.plano = plano
        assinatura.trial_end_at = timezone.now() + timedelta(days=days)
        assinatura.vigencia_fim = None
        assinatura.valor_mensal = plano.preco_aplicado
        assinatura.franquia_contratada_cobrancas = plano.franquia_cobrancas_mes
        assinatura.pending_plano = None
        assinatura.pending_franquia = None
        assinatura.pending_valor_mensal = None
        assinatura.save()

        self.stdout.write(self.style.SUCCESS(
            f'Pronto! "{username}" resetado para trial de {days} dias no plano {plano.nome}.'
        ))
