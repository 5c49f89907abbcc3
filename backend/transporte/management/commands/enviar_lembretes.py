from django.core.management.base import BaseCommand

from transporte.services.reminders import processar_lembretes


class Command(BaseCommand):
    help = 'Envia os lembretes de cobrança do dia pelo WhatsApp.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--respeitar-horario', action='store_true',
            help='Só envia para motoristas cujo horário de envio já passou'
        )

    def handle(self, *args, **options):
        resultado = processar_lembretes(respeitar_horario=options['respeitar_horario'])
        self.stdout.write(self.style.SUCCESS(
            f'Lembretes: {resultado["enviados"]} enviados, '
            f'{resultado["falhas"]} falhas, {resultado["ignorados"]} ignorados.'
        ))
