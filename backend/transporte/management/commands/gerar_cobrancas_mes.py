from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from transporte.models import Motorista
from transporte.services import billing
from transporte.services.assinatura import processar_renovacoes


class Command(BaseCommand):
    help = 'Gera as cobranças do mês para todos os motoristas e abre as renovações de assinatura.'

    def add_arguments(self, parser):
        parser.add_argument('--mes', type=int, help='Mês de referência (padrão: mês corrente)')
        parser.add_argument('--ano', type=int, help='Ano de referência (padrão: ano corrente)')
        parser.add_argument('--motorista', type=int, help='Gera apenas para o motorista informado')
        parser.add_argument(
            '--sem-renovacoes', action='store_true',
            help='Não processa as renovações das assinaturas'
        )

    def handle(self, *args, **options):
        hoje = timezone.localdate()
        mes = options['mes'] or hoje.month
        ano = options['ano'] or hoje.year
        if not 1 <= mes <= 12:
            raise CommandError('Mês inválido.')

        motoristas = Motorista.objects.all()
        if options['motorista']:
            motoristas = motoristas.filter(pk=options['motorista'])
            if not motoristas.exists():
                raise CommandError(f'Motorista {options["motorista"]} não encontrado.')

        total_criadas = 0
        total_ignoradas = 0
        for motorista in motoristas:
            plano = billing.plano_do_motorista(motorista)
            if not plano.is_valid_plan:
                self.stdout.write(self.style.WARNING(f'  {motorista.nome}: assinatura inativa, ignorado'))
                continue
            resultado = billing.gerar_cobrancas_mes(motorista, mes=mes, ano=ano)
            total_criadas += resultado['criadas']
            total_ignoradas += resultado['ignoradas']
            self.stdout.write(
                f'  {motorista.nome}: {resultado["criadas"]} criadas, {resultado["ignoradas"]} ignoradas'
            )

        self.stdout.write(self.style.SUCCESS(
            f'Cobranças {mes:02d}/{ano}: {total_criadas} criadas, {total_ignoradas} ignoradas.'
        ))

        if not options['sem_renovacoes']:
            renovacoes = processar_renovacoes(hoje)
            self.stdout.write(self.style.SUCCESS(
                f'Renovações abertas: {renovacoes["renovacoes"]}, assinaturas suspensas: {renovacoes["suspensas"]}.'
            ))
