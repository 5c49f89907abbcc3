from django.db import migrations


PLANOS_BASE = [
    {
        'nome': 'Gratuito',
        'slug': 'gratuito',
        'descricao_curta': 'Para começar a organizar seus passageiros',
        'preco': '0.00',
        'limite_passageiros': 10,
        'permite_cobrancas': False,
        'trial_days': 0,
        'ordem': 1,
        'beneficios': [
            'Até 10 passageiros',
            'Controle de mensalidades',
            'Link de pré-cadastro para os responsáveis',
        ],
    },
    {
        'nome': 'Essencial',
        'slug': 'essencial',
        'descricao_curta': 'Gestão completa do seu transporte escolar',
        'preco': '49.90',
        'limite_passageiros': None,
        'permite_cobrancas': False,
        'trial_days': 7,
        'ordem': 2,
        'beneficios': [
            'Passageiros ilimitados',
            'Controle de gastos por veículo',
            'Relatórios mensais',
            '7 dias grátis',
        ],
    },
    {
        'nome': 'Profissional',
        'slug': 'profissional',
        'descricao_curta': 'Cobrança automática por PIX e lembretes no WhatsApp',
        'preco': '99.90',
        'limite_passageiros': None,
        'permite_cobrancas': True,
        'trial_days': 0,
        'ordem': 3,
        'beneficios': [
            'Tudo do Plano Essencial',
            'Cobrança automática via PIX',
            'Lembretes automáticos no WhatsApp',
            'Baixa automática dos pagamentos',
        ],
    },
]

FAIXAS_PROFISSIONAL = [
    {'nome': 'Profissional 25', 'slug': 'profissional-25', 'franquia_cobrancas_mes': 25, 'preco': '99.90', 'ordem': 1},
    {'nome': 'Profissional 50', 'slug': 'profissional-50', 'franquia_cobrancas_mes': 50, 'preco': '159.90', 'ordem': 2},
    {'nome': 'Profissional 90', 'slug': 'profissional-90', 'franquia_cobrancas_mes': 90, 'preco': '239.90', 'ordem': 3},
]


def seed_planos(apps, schema_editor):
    Plano = apps.get_model('transporte', 'Plano')
    for p in PLANOS_BASE:
        Plano.objects.get_or_create(slug=p['slug'], defaults={**p, 'tipo': 'base'})

    profissional = Plano.objects.get(slug='profissional')
    for faixa in FAIXAS_PROFISSIONAL:
        Plano.objects.get_or_create(
            slug=faixa['slug'],
            defaults={**faixa, 'tipo': 'sub', 'parent': profissional, 'permite_cobrancas': True},
        )


def remove_planos(apps, schema_editor):
    Plano = apps.get_model('transporte', 'Plano')
    slugs = [p['slug'] for p in PLANOS_BASE + FAIXAS_PROFISSIONAL]
    Plano.objects.filter(slug__in=slugs).delete()


class Migration(migrations.Migration):
    dependencies = [
        ('transporte', '0001_initial'),
    ]
    operations = [
        migrations.RunPython(seed_planos, remove_planos),
    ]
