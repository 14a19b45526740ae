"""Tunable tables for voice scoring and coaching insights.

Pacing bands assume conversational Spanish; adjust them per market.
"""

IDEAL_RATE_MIN = 140
IDEAL_RATE_MAX = 160
ACCEPTABLE_RATE_MIN = 120
ACCEPTABLE_RATE_MAX = 180
ACCEPTABLE_EDGE_SCORE = 80

TONE_WEIGHTS = {
    "confidence": 0.25,
    "empathy": 0.25,
    "professionalism": 0.20,
    "clarity": 0.20,
    "enthusiasm": 0.10,
}
TONE_SHARE = 0.6
SPEECH_RATE_SHARE = 0.4

PACING_MESSAGES = {
    "too_slow": (
        "Hablas demasiado lento. Intenta aumentar un poco el ritmo para mantener "
        "el interés del cliente."
    ),
    "too_fast": (
        "Hablas demasiado rápido. Reduce el ritmo para que el cliente pueda "
        "procesar la información."
    ),
    "ideal": (
        "Excelente ritmo de habla. Mantienes un equilibrio perfecto entre "
        "claridad y dinamismo."
    ),
}

# (dimension, comparison, threshold, message), evaluated top to bottom.
TONE_INSIGHT_RULES = [
    (
        "confidence",
        "below",
        60,
        "Trabaja en proyectar más confianza. Usa un tono firme y evita palabras de duda.",
    ),
    (
        "empathy",
        "below",
        60,
        'Muestra más empatía hacia el cliente. Usa frases como "entiendo su '
        'preocupación" o "comprendo su situación".',
    ),
    (
        "clarity",
        "below",
        60,
        "Mejora la claridad de tu comunicación. Usa frases cortas y evita "
        "tecnicismos innecesarios.",
    ),
    (
        "enthusiasm",
        "below",
        50,
        "Aumenta tu energía y entusiasmo. Un tono más positivo mejora la "
        "experiencia del cliente.",
    ),
    (
        "confidence",
        "at_least",
        80,
        "¡Excelente confianza! Tu seguridad transmite profesionalismo.",
    ),
    (
        "empathy",
        "at_least",
        80,
        "¡Gran empatía! El cliente se siente escuchado y comprendido.",
    ),
]
