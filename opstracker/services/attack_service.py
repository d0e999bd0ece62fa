# opstracker/services/attack_service.py
import os
from typing import Dict, List, Optional, Tuple

from mitreattack.stix20 import MitreAttackData
from sqlalchemy.orm import Session

from opstracker.models.mitre import MitreTactic, MitreTechnique, MitreSubTechnique
from opstracker.utils.logger import logger


class AttackService:
    """Service for loading MITRE ATT&CK data into the taxonomy tables"""

    def __init__(self, attack_json_path: str):
        self.attack_json_path = attack_json_path
        self.attack_data = None
        self._load_attack_data()

    def _load_attack_data(self):
        """Load MITRE ATT&CK data"""
        if not os.path.exists(self.attack_json_path):
            logger.warning(f"ATT&CK JSON file not found: {self.attack_json_path}")
            return

        try:
            self.attack_data = MitreAttackData(self.attack_json_path)
            logger.info("Loaded MITRE ATT&CK data successfully")
        except Exception as e:
            logger.error(f"Error loading ATT&CK data: {e}")
            self.attack_data = None

    @staticmethod
    def _external_reference(stix_object) -> Tuple[Optional[str], Optional[str]]:
        for ref in stix_object.get("external_references", []):
            if ref.get("source_name") == "mitre-attack":
                return ref.get("external_id"), ref.get("url")
        return None, None

    def get_tactics(self) -> List[Dict]:
        """Tactics keyed by ATT&CK id, with their kill-chain shortname"""
        tactics = []
        for tactic in self.attack_data.get_tactics(remove_revoked_deprecated=True):
            external_id, url = self._external_reference(tactic)
            if not external_id:
                continue
            tactics.append({
                "id": external_id,
                "name": tactic.get("name", ""),
                "description": tactic.get("description", ""),
                "url": url,
                "shortname": tactic.get("x_mitre_shortname"),
            })
        return tactics

    def get_techniques(self, tactic_ids_by_shortname: Dict[str, str]) -> Tuple[List[Dict], List[Dict]]:
        """Split attack patterns into techniques and sub-techniques"""
        techniques = []
        sub_techniques = []

        for technique in self.attack_data.get_techniques(include_subtechniques=True, remove_revoked_deprecated=True):
            external_id, url = self._external_reference(technique)
            if not external_id:
                continue

            entry = {
                "id": external_id,
                "name": technique.get("name", ""),
                "description": technique.get("description", ""),
                "url": url,
            }

            if technique.get("x_mitre_is_subtechnique", False):
                entry["technique_id"] = external_id.split(".")[0]
                sub_techniques.append(entry)
            else:
                # A technique can sit under several tactics; the first one is kept
                phases = [
                    phase.get("phase_name")
                    for phase in technique.get("kill_chain_phases", [])
                    if phase.get("kill_chain_name") == "mitre-attack"
                ]
                entry["tactic_id"] = tactic_ids_by_shortname.get(phases[0]) if phases else None
                techniques.append(entry)

        return techniques, sub_techniques

    def seed(self, db: Session) -> Dict[str, int]:
        """Populate the MITRE tables when they are empty"""
        counts = {"tactics": 0, "techniques": 0, "sub_techniques": 0}

        if not self.attack_data:
            logger.warning("ATT&CK data not available, skipping taxonomy seed")
            return counts

        if db.query(MitreTechnique).count() > 0:
            logger.info("MITRE taxonomy already present, skipping seed")
            return counts

        try:
            tactics = self.get_tactics()
            tactic_ids = {t["shortname"]: t["id"] for t in tactics if t["shortname"]}
            techniques, sub_techniques = self.get_techniques(tactic_ids)

            for tactic in tactics:
                db.add(MitreTactic(
                    id=tactic["id"],
                    name=tactic["name"],
                    description=tactic["description"],
                    url=tactic["url"],
                ))
            for technique in techniques:
                db.add(MitreTechnique(**technique))

            parent_ids = {t["id"] for t in techniques}
            for sub_technique in sub_techniques:
                if sub_technique["technique_id"] not in parent_ids:
                    logger.warning(f"Skipping sub-technique {sub_technique['id']}: parent not found")
                    continue
                db.add(MitreSubTechnique(**sub_technique))
                counts["sub_techniques"] += 1

            db.commit()
            counts["tactics"] = len(tactics)
            counts["techniques"] = len(techniques)
            logger.info(
                f"Seeded MITRE taxonomy: {counts['tactics']} tactics, "
                f"{counts['techniques']} techniques, {counts['sub_techniques']} sub-techniques"
            )
            return counts
        except Exception as e:
            logger.error(f"Error seeding MITRE taxonomy: {e}")
            db.rollback()
            raise
