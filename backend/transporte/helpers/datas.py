import calendar
from datetime import date

MESES = (
    'Janeiro', 'Fevereiro', 'Março', 'Abril', 'Maio', 'Junho',
    'Julho', 'Agosto', 'Setembro', 'Outubro', 'Novembro', 'Dezembro',
)


def add_one_month_safe(base_date):
    """Adds one month preserving day when possible, clamping to month end otherwise."""
    month = base_date.month % 12 + 1
    year = base_date.year + (base_date.month // 12)
    last_day = calendar.monthrange(year, month)[1]
    return base_date.replace(year=year, month=month, day=min(base_date.day, last_day))


def vencimento_no_mes(ano: int, mes: int, dia: int) -> date:
    """Dia de vencimento limitado ao último dia do mês (31 -> 28/29/30)."""
    last_day = calendar.monthrange(ano, mes)[1]
    return date(ano, mes, min(max(1, dia), last_day))


def nome_mes(mes: int) -> str:
    return MESES[mes - 1]
