"""
Exceptions du moteur de plan de classe.
"""


class NotFoundError(ValueError):
    """Identifiant inconnu (élève, banc, colonne, période)."""
