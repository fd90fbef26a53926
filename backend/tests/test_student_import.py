"""
Tests unitaires pour l'import CSV du roster serveur (POST /students/import).
"""

from datetime import datetime
from itertools import count
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from casiers.models.student import Student
from casiers.services.student_import import import_students_csv, parse_students_csv


# --- Helpers ---

def fake_student_factory():
    """Remplace le modèle Student : retourne des mocks avec un id généré."""
    ids = count(1)

    def factory(**kwargs):
        s = MagicMock(spec=Student)
        s.id = next(ids)
        s.created_at = datetime.now()
        for field, value in kwargs.items():
            setattr(s, field, value)
        return s

    return factory


# --- parse_students_csv ---

def test_parse_lignes_valides():
    rows = parse_students_csv("1245,BEN CHOUCH,YOUSSEF,2CIEL,LEP\n1246,BILUMBU,KATUVWA,1A,lg\n")

    assert len(rows) == 2
    assert rows[0].code == 1245
    assert rows[0].last_name == "BEN CHOUCH"
    assert rows[1].cycle == "LG"


def test_parse_code_non_numerique_ignore():
    """Une éventuelle ligne d'en-tête est écartée comme code non numérique."""
    rows = parse_students_csv("code,nom,prenom,classe,type\n1245,BEN CHOUCH,YOUSSEF,2CIEL,LEP\n")
    assert [r.code for r in rows] == [1245]


def test_parse_code_partiellement_numerique_ignore():
    """Le code doit être un entier complet : "12abc" ou "12.0" sont écartés."""
    rows = parse_students_csv("12abc,A,B,C,LEP\n12.0,D,E,F,LG\n13,G,H,I,LG\n")
    assert [r.code for r in rows] == [13]


def test_parse_champ_manquant_ignore():
    rows = parse_students_csv("1245,,YOUSSEF,2CIEL,LEP\n1246,BILUMBU,KATUVWA\n1247,A,B,C\n")
    assert [r.code for r in rows] == [1247]
    assert rows[0].cycle is None


def test_parse_lignes_vides_ignorees():
    assert parse_students_csv("\n\n1245,A,B,C,LEP\n\n") != []


# --- import_students_csv ---

def test_import_commit_par_ligne():
    db = MagicMock()
    with patch("casiers.services.student_import.Student", side_effect=fake_student_factory()):
        result = import_students_csv(b"1245,BEN CHOUCH,YOUSSEF,2CIEL,LEP\n1246,BILUMBU,KATUVWA,1A,LG\n", db)

    assert result.count == 2
    assert result.message == "2 étudiants importés avec succès"
    assert db.commit.call_count == 2
    assert result.imported_students[0].code == 1245
    assert result.imported_students[1].id == 2


def test_import_echec_ligne_n_arrete_pas_le_lot():
    """Un code déjà en base fait échouer une ligne ; les autres sont importées."""
    db = MagicMock()
    db.commit.side_effect = [None, IntegrityError("INSERT", {}, Exception("unique")), None]

    with patch("casiers.services.student_import.Student", side_effect=fake_student_factory()):
        result = import_students_csv(b"1,A,B,1A,LG\n2,C,D,1A,LG\n3,E,F,1A,LEP\n", db)

    assert result.count == 2
    assert [s.code for s in result.imported_students] == [1, 3]
    db.rollback.assert_called_once()


def test_import_joint_les_casiers_du_registre(registry):
    from casiers.schemas.registry import Cycle, Locker, LockerStatus
    from casiers.schemas.registry import Student as RegistryStudent

    registry.add_locker(Locker(id=5, building="Bâtiment C"))
    registry.add_student(RegistryStudent(id="1245", last_name="A", first_name="B", class_name="1A", cycle=Cycle.LG))
    registry.update_locker_status(5, LockerStatus.ASSIGNED, "1245")

    db = MagicMock()
    with patch("casiers.services.student_import.Student", side_effect=fake_student_factory()):
        result = import_students_csv(b"1245,A,B,1A,LG\n", db, registry)

    assert result.imported_students[0].lockers[0].id == 5


def test_import_fichier_non_utf8():
    with pytest.raises(ValueError):
        import_students_csv("1245,Ünal,B,1A".encode("utf-16"), MagicMock())


def test_import_fichier_sans_ligne_valide():
    db = MagicMock()
    result = import_students_csv(b"code,nom,prenom\n", db)
    assert result.count == 0
    db.commit.assert_not_called()
