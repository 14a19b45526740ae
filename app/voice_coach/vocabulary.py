"""Domain vocabularies for keyword detection (Spanish, Paraguayan banking).

Each term belongs to exactly one category. Order matters: detection reports
matches in the order the terms appear here, banking first.
"""

BANKING_KEYWORDS = (
    # account operations
    "cuenta", "saldo", "depósito", "retiro", "transferencia", "movimiento",
    # cards
    "tarjeta", "débito", "crédito", "PIN", "CVV", "vencimiento",
    # loans
    "préstamo", "cuota", "interés", "garantía", "refinanciación",
    # security
    "contraseña", "clave", "token", "seguridad", "verificación", "autenticación",
    # fraud
    "fraude", "robo", "estafa", "sospechoso", "bloqueo", "denuncia",
    "lavado", "activos", "ilícito",
    # customer service
    "reclamo", "queja", "consulta", "solicitud", "problema", "solución",
)

EMOTIONAL_KEYWORDS = (
    "disculpe", "lamento", "comprendo", "entiendo", "ayudar", "resolver",
    "tranquilo", "preocupe", "asegurar", "garantizar", "confianza",
)

PROTOCOL_KEYWORDS = (
    "verificar", "confirmar", "documento", "identidad", "DNI", "cédula",
    "autorización", "permiso", "procedimiento", "protocolo", "política",
)

KEYWORD_VOCABULARIES = {
    "banking": BANKING_KEYWORDS,
    "emotional": EMOTIONAL_KEYWORDS,
    "protocol": PROTOCOL_KEYWORDS,
}
