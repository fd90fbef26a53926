"""
Registre des casiers : source unique de vérité pour les casiers, les élèves
et l'historique des modifications.

Toutes les mutations passent par LockerRegistry pour que l'historique reste
cohérent. Après chaque mutation, un snapshot complet est écrit dans le
SnapshotStore injecté ; un échec d'écriture est journalisé puis ignoré
(l'état en mémoire reste la référence).
"""

import csv
import io
import logging
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from casiers.schemas.registry import (
    BuildingStats,
    Cycle,
    HistoryAction,
    HistoryEntry,
    Locker,
    LockerStatus,
    RegistrySnapshot,
    Student,
)
from casiers.storage import MemorySnapshotStore, SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_KEY = "casiers-data"
DEFAULT_HISTORY_LIMIT = 100

EXPORT_HEADERS = [
    "Numéro", "Bâtiment", "Statut", "Matricule Élève", "Nom Élève", "Prénom Élève", "Classe",
]


class LockerRegistry:
    """
    Registre en mémoire des casiers et des élèves.

    La relation élève → casier est maintenue dans un index explicite
    (`_locker_by_student`) : un élève occupe au plus un casier.
    """

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        snapshot_key: str = DEFAULT_SNAPSHOT_KEY,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.store = store if store is not None else MemorySnapshotStore()
        self.snapshot_key = snapshot_key
        self.history_limit = history_limit

        self._lockers: Dict[int, Locker] = {}
        self._students: Dict[str, Student] = {}
        self._history: List[HistoryEntry] = []
        self._locker_by_student: Dict[str, int] = {}

        self._load()

    # --- Persistance ---

    def _load(self) -> None:
        """Charge le snapshot durable une seule fois, à la construction."""
        try:
            raw = self.store.load(self.snapshot_key)
        except Exception as exc:
            logger.error("Erreur lors du chargement du registre : %s", exc)
            return
        if not raw:
            return

        try:
            snapshot = RegistrySnapshot.model_validate_json(raw)
        except ValidationError as exc:
            logger.error("Snapshot du registre illisible, démarrage à vide : %s", exc)
            return

        self._lockers = dict(snapshot.lockers)
        self._students = dict(snapshot.students)
        self._history = list(snapshot.history[: self.history_limit])
        for locker in self.get_all_lockers():
            if not locker.student_id:
                continue
            if locker.student_id in self._locker_by_student:
                # un casier par élève : seul le plus petit numéro est conservé
                logger.warning(
                    "Casier %d libéré au chargement : élève %s déjà au casier %d",
                    locker.id, locker.student_id, self._locker_by_student[locker.student_id],
                )
                self._lockers[locker.id] = locker.model_copy(
                    update={"status": LockerStatus.FREE, "student_id": None}
                )
                continue
            self._locker_by_student[locker.student_id] = locker.id

        logger.info(
            "Registre chargé : %d casiers, %d élèves, %d entrées d'historique",
            len(self._lockers), len(self._students), len(self._history),
        )

    def _save(self) -> None:
        snapshot = RegistrySnapshot(
            lockers=list(self._lockers.items()),
            students=list(self._students.items()),
            history=self._history,
        )
        try:
            self.store.save(self.snapshot_key, snapshot.model_dump_json(by_alias=True))
        except Exception as exc:
            logger.error("Erreur lors de la sauvegarde du registre : %s", exc)

    # --- Historique et index ---

    def _record(self, action: HistoryAction, details: str) -> None:
        self._history.insert(0, HistoryEntry(action=action, details=details))
        del self._history[self.history_limit:]

    def _link(self, locker: Locker) -> None:
        if locker.student_id:
            self._locker_by_student[locker.student_id] = locker.id

    def _unlink(self, locker: Locker) -> None:
        if locker.student_id and self._locker_by_student.get(locker.student_id) == locker.id:
            del self._locker_by_student[locker.student_id]

    def _record_unassignment(self, locker: Locker) -> None:
        """Trace la désattribution, seulement si l'ancien élève existe encore."""
        previous = self._students.get(locker.student_id) if locker.student_id else None
        if previous:
            self._record(
                HistoryAction.LOCKER_UNASSIGNED,
                f"Casier {locker.id} désattribué de {previous.full_name}",
            )

    def _release(self, locker: Locker) -> None:
        self._record_unassignment(locker)
        self._unlink(locker)
        self._lockers[locker.id] = locker.model_copy(
            update={"status": LockerStatus.FREE, "student_id": None}
        )

    def _release_other_locker(self, student_id: Optional[str], locker_id: int) -> None:
        """Libère le casier que l'élève occupe ailleurs que sur `locker_id`."""
        if not student_id:
            return
        held_id = self._locker_by_student.get(student_id)
        if held_id is not None and held_id != locker_id:
            self._release(self._lockers[held_id])

    # --- Casiers ---

    def add_locker(self, locker: Locker) -> None:
        """Ajoute ou remplace un casier (par numéro)."""
        previous = self._lockers.get(locker.id)
        if previous is not None:
            self._unlink(previous)
        self._release_other_locker(locker.student_id, locker.id)
        self._lockers[locker.id] = locker
        self._link(locker)
        self._record(HistoryAction.LOCKER_ADDED, f"Casier {locker.id} ajouté dans {locker.building}")
        self._save()

    def add_lockers(self, lockers: Iterable[Locker]) -> int:
        """
        Ajout en masse : seuls les numéros absents du registre sont insérés.
        Un seul snapshot est écrit à la fin. Retourne le nombre de casiers ajoutés.
        """
        added = 0
        for locker in lockers:
            if locker.id in self._lockers:
                continue
            self._release_other_locker(locker.student_id, locker.id)
            self._lockers[locker.id] = locker
            self._link(locker)
            self._record(HistoryAction.LOCKER_ADDED, f"Casier {locker.id} ajouté dans {locker.building}")
            added += 1
        if added:
            self._save()
        return added

    def get_locker(self, locker_id: int) -> Optional[Locker]:
        return self._lockers.get(locker_id)

    def get_all_lockers(self) -> List[Locker]:
        return sorted(self._lockers.values(), key=lambda locker: locker.id)

    def update_locker_status(
        self, locker_id: int, status: LockerStatus, student_id: Optional[str] = None
    ) -> Optional[Locker]:
        """
        Change le statut d'un casier et l'élève associé.

        - Numéro inconnu : aucun effet, retourne None.
        - Statut `free` : l'élève associé est toujours effacé.
        - Si l'élève précédent diffère du nouveau : désattribution tracée.
        - Si le nouvel élève occupait un autre casier : cet autre casier est libéré.
        - `assigned` avec un élève connu : attribution tracée ;
          `maintenance` : mise en maintenance tracée.
        """
        locker = self._lockers.get(locker_id)
        if locker is None:
            return None

        status = LockerStatus(status)
        if status == LockerStatus.FREE:
            student_id = None

        if locker.student_id and locker.student_id != student_id:
            self._record_unassignment(locker)

        self._release_other_locker(student_id, locker_id)

        if status == LockerStatus.ASSIGNED and student_id:
            student = self._students.get(student_id)
            if student:
                self._record(
                    HistoryAction.LOCKER_ASSIGNED,
                    f"Casier {locker_id} attribué à {student.full_name}",
                )
        elif status == LockerStatus.MAINTENANCE:
            self._record(HistoryAction.LOCKER_MAINTENANCE, f"Casier {locker_id} mis en maintenance")

        self._unlink(locker)
        updated = locker.model_copy(update={"status": status, "student_id": student_id})
        self._lockers[locker_id] = updated
        self._link(updated)
        self._save()
        return updated

    def get_lockers_by_building(self, building: str) -> List[Locker]:
        return [locker for locker in self._lockers.values() if locker.building == building]

    # --- Élèves ---

    def add_student(self, student: Student) -> None:
        """Ajoute ou remplace un élève (par matricule)."""
        self._students[student.id] = student
        self._record(
            HistoryAction.STUDENT_ADDED,
            f"{student.full_name} ({student.class_name}) ajouté",
        )
        self._save()

    def update_student(
        self,
        student_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        class_name: Optional[str] = None,
        cycle: Optional[Cycle] = None,
    ) -> Optional[Student]:
        """Met à jour les champs fournis d'un élève. Retourne None si l'élève est inconnu."""
        student = self._students.get(student_id)
        if student is None:
            return None

        changes = {
            "first_name": first_name,
            "last_name": last_name,
            "class_name": class_name,
            "cycle": cycle,
        }
        data = student.model_dump()
        data.update({field: value for field, value in changes.items() if value is not None})
        updated = Student.model_validate(data)

        self._students[student_id] = updated
        self._record(
            HistoryAction.STUDENT_UPDATED,
            f"{updated.full_name} ({updated.class_name}) modifié",
        )
        self._save()
        return updated

    def remove_student(self, student_id: str) -> Optional[Student]:
        """
        Supprime un élève. Son casier est libéré avant la suppression, pour que
        l'entrée de désattribution puisse encore nommer l'élève.
        Retourne l'élève supprimé, ou None s'il était inconnu.
        """
        student = self._students.get(student_id)
        if student is None:
            return None

        locker = self.get_student_locker(student_id)
        if locker is not None:
            self.update_locker_status(locker.id, LockerStatus.FREE)

        del self._students[student_id]
        self._record(
            HistoryAction.STUDENT_REMOVED,
            f"{student.full_name} ({student.class_name}) supprimé",
        )
        self._save()
        return student

    def get_student(self, student_id: str) -> Optional[Student]:
        return self._students.get(student_id)

    def get_all_students(self) -> List[Student]:
        return list(self._students.values())

    def get_students_by_cycle(self, cycle: Cycle) -> List[Student]:
        return [student for student in self._students.values() if student.cycle == cycle]

    def get_student_locker(self, student_id: str) -> Optional[Locker]:
        locker_id = self._locker_by_student.get(student_id)
        if locker_id is None:
            return None
        return self._lockers.get(locker_id)

    def search_students(self, query: str) -> List[Student]:
        """Recherche insensible à la casse (sous-chaîne) sur nom, prénom ou matricule."""
        q = query.lower()
        return [
            s for s in self._students.values()
            if q in s.last_name.lower() or q in s.first_name.lower() or q in s.matricule.lower()
        ]

    # --- Historique ---

    def get_history(self) -> List[HistoryEntry]:
        """Entrées de la plus récente à la plus ancienne."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history = []
        self._save()

    # --- Export et statistiques ---

    def export_locker_assignments(self) -> str:
        """
        Export CSV (virgule) des casiers triés par numéro.
        Colonnes élève vides quand le casier n'est pas attribué.
        """
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(EXPORT_HEADERS)

        for locker in self.get_all_lockers():
            student = self._students.get(locker.student_id) if locker.student_id else None
            writer.writerow([
                str(locker.id),
                locker.building,
                locker.status.value,
                student.matricule if student else "",
                student.last_name if student else "",
                student.first_name if student else "",
                student.class_name if student else "",
            ])

        return output.getvalue().rstrip("\n")

    def get_stats_by_building(self, building: str) -> BuildingStats:
        lockers = self.get_lockers_by_building(building)
        return BuildingStats(
            total=len(lockers),
            assigned=sum(1 for locker in lockers if locker.status == LockerStatus.ASSIGNED),
            maintenance=sum(1 for locker in lockers if locker.status == LockerStatus.MAINTENANCE),
            free=sum(1 for locker in lockers if locker.status == LockerStatus.FREE),
        )

    def get_all_stats(self) -> Dict[str, BuildingStats]:
        buildings = dict.fromkeys(locker.building for locker in self._lockers.values())
        return {building: self.get_stats_by_building(building) for building in buildings}

    # --- Nettoyage ---

    def clear_all_data(self) -> None:
        """Vide les casiers, les élèves, l'historique et supprime le snapshot durable."""
        self._lockers.clear()
        self._students.clear()
        self._history = []
        self._locker_by_student.clear()
        try:
            self.store.delete(self.snapshot_key)
        except Exception as exc:
            logger.error("Erreur lors de la suppression du snapshot : %s", exc)
