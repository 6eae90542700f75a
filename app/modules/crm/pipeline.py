PIPELINE_STATUSES = ["new", "contacted", "visit_scheduled", "negotiation", "closed", "lost"]

STATUS_LABELS = {
    "new": "Novo",
    "contacted": "Contactado",
    "visit_scheduled": "Visita Agendada",
    "negotiation": "Negociação",
    "closed": "Fechado",
    "lost": "Perdido",
}


def is_valid_status(status: str) -> bool:
    return status in PIPELINE_STATUSES
