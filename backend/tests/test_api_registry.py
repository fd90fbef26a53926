"""
Tests d'intégration API pour les élèves du registre, l'import CSV et l'historique.
"""

import pytest

from casiers.schemas.registry import Cycle, Locker, LockerStatus, Student


HEADER = "Code;Nom;Prénom;Classe;Type\n"


@pytest.fixture
def populated(registry):
    registry.add_locker(Locker(id=5, building="Bâtiment C"))
    registry.add_student(Student(id="1245", last_name="BEN CHOUCH", first_name="YOUSSEF", class_name="2CIEL", cycle=Cycle.LEP))
    registry.add_student(Student(id="1246", last_name="BILUMBU", first_name="KATUVWA", class_name="1A", cycle=Cycle.LG))
    return registry


# --- Élèves ---

def test_recherche(client, populated):
    resp = client.get("/api/v1/registry/students", params={"q": "ben"})
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()] == ["1245"]


def test_filtre_cycle(client, populated):
    resp = client.get("/api/v1/registry/students", params={"cycle": "LG"})
    assert [s["id"] for s in resp.json()] == ["1246"]


def test_ajout_eleve(client, registry):
    resp = client.post("/api/v1/registry/students", json={
        "id": "1300", "last_name": "DUPONT", "first_name": "JEAN", "class": "2A", "cycle": "LG",
    })

    assert resp.status_code == 201
    assert resp.json()["matricule"] == "1300"
    assert resp.json()["class"] == "2A"
    assert registry.get_student("1300") is not None


def test_ajout_eleve_code_existant(client, populated):
    resp = client.post("/api/v1/registry/students", json={
        "id": "1245", "last_name": "X", "first_name": "Y", "class": "2A", "cycle": "LG",
    })
    assert resp.status_code == 409


def test_ajout_eleve_cycle_invalide(client):
    resp = client.post("/api/v1/registry/students", json={
        "id": "1300", "last_name": "X", "first_name": "Y", "class": "2A", "cycle": "LEG",
    })
    assert resp.status_code == 422


def test_detail_eleve(client, populated):
    assert client.get("/api/v1/registry/students/1245").json()["last_name"] == "BEN CHOUCH"
    assert client.get("/api/v1/registry/students/0000").status_code == 404


def test_modifier_eleve(client, populated):
    resp = client.patch("/api/v1/registry/students/1246", json={"class": "2B"})

    assert resp.status_code == 200
    assert resp.json()["class"] == "2B"
    assert resp.json()["first_name"] == "KATUVWA"


def test_modifier_eleve_inconnu(client, populated):
    assert client.patch("/api/v1/registry/students/0000", json={"class": "2B"}).status_code == 404


def test_supprimer_eleve_libere_casier(client, populated):
    populated.update_locker_status(5, LockerStatus.ASSIGNED, "1245")

    resp = client.delete("/api/v1/registry/students/1245")

    assert resp.status_code == 204
    assert populated.get_locker(5).status == LockerStatus.FREE
    assert populated.get_locker(5).student_id is None


def test_supprimer_eleve_inconnu(client, populated):
    assert client.delete("/api/v1/registry/students/0000").status_code == 404


def test_casier_d_un_eleve(client, populated):
    assert client.get("/api/v1/registry/students/1245/locker").json() is None

    populated.update_locker_status(5, LockerStatus.ASSIGNED, "1245")

    assert client.get("/api/v1/registry/students/1245/locker").json()["id"] == 5


# --- Import CSV ---

def test_import_dry_run(client, populated):
    content = (HEADER + "1245;BEN CHOUCH;YOUSSEF;2CIEL;LEP\n1300;DUPONT;JEAN;2A;LG\n").encode("utf-8")

    resp = client.post(
        "/api/v1/registry/students/import",
        params={"dry_run": "true"},
        files={"file": ("eleves.csv", content, "text/csv")},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert [r["code"] for r in data["valid"]] == ["1300"]
    assert data["rejected"][0]["reason"] == "Un élève avec ce code existe déjà"
    assert populated.get_student("1300") is None


def test_import_commit(client, populated):
    content = (HEADER + "1245;BEN CHOUCH;YOUSSEF;2CIEL;LEP\n1300;DUPONT;JEAN;2A;LG\n").encode("utf-8-sig")

    resp = client.post(
        "/api/v1/registry/students/import",
        files={"file": ("eleves.csv", content, "text/csv")},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["imported"] == 1
    assert data["rejected"] == 1
    assert populated.get_student("1300").class_name == "2A"


def test_import_extension_invalide(client):
    resp = client.post(
        "/api/v1/registry/students/import",
        files={"file": ("eleves.txt", b"x", "text/plain")},
    )
    assert resp.status_code == 400


def test_import_entete_seul(client):
    resp = client.post(
        "/api/v1/registry/students/import",
        files={"file": ("eleves.csv", HEADER.encode("utf-8"), "text/csv")},
    )
    assert resp.status_code == 400
    assert "en-tête" in resp.json()["detail"]


# --- Historique et remise à zéro ---

def test_historique(client, populated):
    resp = client.get("/api/v1/history")

    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == 3
    assert data[0]["action"] == "Ajout élève"
    assert data[0]["details"] == "BILUMBU KATUVWA (1A) ajouté"
    assert data[-1]["action"] == "Ajout casier"


def test_vider_historique(client, populated):
    assert client.delete("/api/v1/history").status_code == 204
    assert client.get("/api/v1/history").json() == []


def test_effacer_registre(client, populated, store):
    assert client.delete("/api/v1/registry").status_code == 204
    assert populated.get_all_students() == []
    assert client.get("/api/v1/lockers").json() == []
    assert "casiers-data" not in store.data
