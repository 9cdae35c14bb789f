# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata.

from app.models.school_class import SchoolClass  # noqa: F401
