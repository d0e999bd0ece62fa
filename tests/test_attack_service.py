from unittest.mock import MagicMock, patch

import pytest

from opstracker.models import MitreSubTechnique, MitreTactic, MitreTechnique, User, UserRole
from opstracker.services import attack_service
from opstracker.services.attack_service import AttackService
from opstracker.services.bootstrap import ensure_initialized


def _ref(external_id):
    return [{"source_name": "mitre-attack", "external_id": external_id, "url": f"https://attack.mitre.org/{external_id}"}]


TACTICS = [
    {"name": "Initial Access", "description": "Get in.", "x_mitre_shortname": "initial-access", "external_references": _ref("TA0001")},
    {"name": "Execution", "description": "Run code.", "x_mitre_shortname": "execution", "external_references": _ref("TA0002")},
]

TECHNIQUES = [
    {
        "name": "Phishing",
        "description": "Adversaries may send phishing messages.",
        "external_references": _ref("T1566"),
        "kill_chain_phases": [{"kill_chain_name": "mitre-attack", "phase_name": "initial-access"}],
    },
    {
        "name": "Spearphishing Attachment",
        "x_mitre_is_subtechnique": True,
        "external_references": _ref("T1566.001"),
        "kill_chain_phases": [{"kill_chain_name": "mitre-attack", "phase_name": "initial-access"}],
    },
    {
        "name": "PowerShell",
        "x_mitre_is_subtechnique": True,
        "external_references": _ref("T1059.001"),
        "kill_chain_phases": [{"kill_chain_name": "mitre-attack", "phase_name": "execution"}],
    },
    {"name": "No ATT&CK id", "external_references": [{"source_name": "capec", "external_id": "CAPEC-1"}]},
]


@pytest.fixture()
def attack_file(tmp_path):
    path = tmp_path / "enterprise-attack.json"
    path.write_text("{}")
    return str(path)


@pytest.fixture()
def fake_attack_data():
    data = MagicMock()
    data.get_tactics.return_value = TACTICS
    data.get_techniques.return_value = TECHNIQUES
    with patch.object(attack_service, "MitreAttackData", return_value=data) as factory:
        yield factory


def test_seed_populates_taxonomy(db, attack_file, fake_attack_data):
    counts = AttackService(attack_file).seed(db)

    assert counts == {"tactics": 2, "techniques": 1, "sub_techniques": 1}
    assert db.get(MitreTechnique, "T1566").tactic_id == "TA0001"
    assert db.get(MitreSubTechnique, "T1566.001").technique_id == "T1566"
    # Parent T1059 is not in the bundle
    assert db.get(MitreSubTechnique, "T1059.001") is None
    assert db.query(MitreTactic).count() == 2


def test_seed_is_idempotent(db, attack_file, fake_attack_data):
    service = AttackService(attack_file)
    service.seed(db)

    assert service.seed(db) == {"tactics": 0, "techniques": 0, "sub_techniques": 0}
    assert db.query(MitreTechnique).count() == 1


def test_missing_bundle_skips_seed(db, tmp_path):
    service = AttackService(str(tmp_path / "absent.json"))

    assert service.attack_data is None
    assert service.seed(db) == {"tactics": 0, "techniques": 0, "sub_techniques": 0}


def test_ensure_initialized_creates_admin_once(db, attack_file, fake_attack_data):
    ensure_initialized(db, attack_json_path=attack_file)
    ensure_initialized(db, attack_json_path=attack_file)

    users = db.query(User).all()
    assert len(users) == 1
    assert users[0].role == UserRole.ADMIN
    assert db.query(MitreTechnique).count() == 1
