import re
import uuid


PLACA_ANTIGA_RE = re.compile(r'^[A-Z]{3}[0-9]{4}$')
PLACA_MERCOSUL_RE = re.compile(r'^[A-Z]{3}[0-9][A-Z][0-9]{2}$')
CEP_RE = re.compile(r'^\d{5}-\d{3}$')
EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

CAMPOS_ENDERECO_OBRIGATORIOS = ('logradouro', 'numero', 'bairro', 'cidade', 'estado', 'cep')


def normalize_digits(value: str) -> str:
    return ''.join(ch for ch in str(value or '') if ch.isdigit())


def is_valid_cpf(cpf: str) -> bool:
    cpf = normalize_digits(cpf)
    if len(cpf) != 11 or cpf == cpf[0] * 11:
        return False

    total = sum(int(cpf[i]) * (10 - i) for i in range(9))
    first_digit = ((total * 10) % 11) % 10
    if first_digit != int(cpf[9]):
        return False

    total = sum(int(cpf[i]) * (11 - i) for i in range(10))
    second_digit = ((total * 10) % 11) % 10
    return second_digit == int(cpf[10])


def is_valid_cnpj(cnpj: str) -> bool:
    cnpj = normalize_digits(cnpj)
    if len(cnpj) != 14 or cnpj == cnpj[0] * 14:
        return False

    weights_1 = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    total = sum(int(cnpj[i]) * weights_1[i] for i in range(12))
    remainder = total % 11
    first_digit = 0 if remainder < 2 else 11 - remainder
    if first_digit != int(cnpj[12]):
        return False

    weights_2 = [6] + weights_1
    total = sum(int(cnpj[i]) * weights_2[i] for i in range(13))
    remainder = total % 11
    second_digit = 0 if remainder < 2 else 11 - remainder
    return second_digit == int(cnpj[13])


def is_valid_cpf_cnpj(value: str) -> bool:
    digits = normalize_digits(value)
    if len(digits) == 11:
        return is_valid_cpf(digits)
    if len(digits) == 14:
        return is_valid_cnpj(digits)
    return False


def is_valid_telefone(value: str) -> bool:
    """Celular com DDD: 11 dígitos."""
    return len(normalize_digits(value)) == 11


def is_valid_cep(value: str) -> bool:
    return bool(CEP_RE.match(str(value or '').strip()))


def normalizar_placa(placa: str) -> str:
    return re.sub(r'[^A-Z0-9]', '', str(placa or '').upper())


def is_valid_placa(placa: str) -> bool:
    placa = normalizar_placa(placa)
    return bool(PLACA_ANTIGA_RE.match(placa) or PLACA_MERCOSUL_RE.match(placa))


def formatar_placa(placa: str) -> str:
    """ABC1234 -> ABC-1234; Mercosul fica sem hífen."""
    placa = normalizar_placa(placa)
    if PLACA_ANTIGA_RE.match(placa):
        return f'{placa[:3]}-{placa[3:]}'
    return placa


def validar_endereco(dados: dict) -> dict:
    """
    CEP válido ou logradouro preenchido tornam o endereço completo obrigatório.
    Número sozinho não exige nada. Retorna {campo: mensagem}.
    """
    errors = {}
    cep = (dados.get('cep') or '').strip()
    logradouro = (dados.get('logradouro') or '').strip()

    if cep and not is_valid_cep(cep):
        errors['cep'] = 'CEP inválido. Use o formato 00000-000.'

    if is_valid_cep(cep) or logradouro:
        for campo in CAMPOS_ENDERECO_OBRIGATORIOS:
            if not (dados.get(campo) or '').strip():
                errors.setdefault(campo, 'Campo obrigatório quando o endereço é informado.')

    estado = (dados.get('estado') or '').strip()
    if estado and len(estado) != 2:
        errors['estado'] = 'Use a sigla do estado (2 letras).'
    return errors


def validar_chave_pix(tipo: str, chave: str):
    """Retorna a chave normalizada ou levanta ValueError."""
    chave = (chave or '').strip()
    if not chave:
        raise ValueError('Chave PIX é obrigatória.')

    if tipo == 'CPF':
        if not is_valid_cpf(chave):
            raise ValueError('CPF inválido.')
        return normalize_digits(chave)
    if tipo == 'CNPJ':
        if not is_valid_cnpj(chave):
            raise ValueError('CNPJ inválido.')
        return normalize_digits(chave)
    if tipo == 'EMAIL':
        if not EMAIL_RE.match(chave):
            raise ValueError('E-mail inválido.')
        return chave.lower()
    if tipo == 'TELEFONE':
        if not is_valid_telefone(chave):
            raise ValueError('Telefone deve ter 11 dígitos com DDD.')
        return normalize_digits(chave)
    if tipo == 'ALEATORIA':
        try:
            return str(uuid.UUID(chave))
        except ValueError:
            raise ValueError('Chave aleatória inválida.')
    raise ValueError('Tipo de chave PIX inválido.')
