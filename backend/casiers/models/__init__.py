# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant l'appel à Base.metadata.create_all() au démarrage de l'API.

from casiers.models.student import Student  # noqa: F401
from casiers.models.snapshot import Snapshot  # noqa: F401
