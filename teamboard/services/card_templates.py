"""
Pre-filled card scaffolds for common task types
"""
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class CardTemplate:
    id: str
    name: str
    task_type: str
    description: str
    acceptance_criteria: str
    priority: str
    is_onboarding: bool


CARD_TEMPLATES: List[CardTemplate] = [
    CardTemplate(
        id="design",
        name="Design Task",
        task_type="Design",
        description=(
            "1. Review requirements/constraints\n"
            "2. Create initial sketches/CAD model\n"
            "3. Get feedback from team lead\n"
            "4. Finalize design with dimensions"
        ),
        acceptance_criteria=(
            "- [ ] CAD model uploaded to Drive\n"
            "- [ ] Drawing with key dimensions\n"
            "- [ ] Lead reviewed and approved\n"
            "- [ ] Link added to this card"
        ),
        priority="P2",
        is_onboarding=False,
    ),
    CardTemplate(
        id="build",
        name="Build Task",
        task_type="Build",
        description=(
            "1. Gather materials from inventory\n"
            "2. Follow build instructions/CAD\n"
            "3. Take photos during assembly\n"
            "4. Log any issues encountered"
        ),
        acceptance_criteria=(
            "- [ ] Part built to spec\n"
            "- [ ] Photo(s) of completed work\n"
            "- [ ] Any issues logged\n"
            "- [ ] Cleaned up workspace"
        ),
        priority="P2",
        is_onboarding=True,
    ),
    CardTemplate(
        id="test",
        name="Test Task",
        task_type="Test",
        description=(
            "1. Set up test environment\n"
            "2. Follow test procedure\n"
            "3. Record all data points\n"
            "4. Document any anomalies"
        ),
        acceptance_criteria=(
            "- [ ] Test data logged (spreadsheet/photo)\n"
            "- [ ] Pass/fail result recorded\n"
            "- [ ] Next steps identified if failed\n"
            "- [ ] Equipment returned/cleaned"
        ),
        priority="P1",
        is_onboarding=False,
    ),
    CardTemplate(
        id="procurement",
        name="Procurement Task",
        task_type="Procurement",
        description=(
            "1. Identify exact part needed (link/PN)\n"
            "2. Check budget with lead\n"
            "3. Submit purchase request\n"
            "4. Track delivery"
        ),
        acceptance_criteria=(
            "- [ ] Part link/PN in Inputs\n"
            "- [ ] Price confirmed under budget\n"
            "- [ ] Order placed (screenshot)\n"
            "- [ ] Delivery tracked"
        ),
        priority="P2",
        is_onboarding=False,
    ),
    CardTemplate(
        id="docs",
        name="Documentation / Report",
        task_type="Docs",
        description=(
            "1. Gather data/photos/results\n"
            "2. Write draft in Google Docs\n"
            "3. Get peer review\n"
            "4. Submit final version"
        ),
        acceptance_criteria=(
            "- [ ] Document drafted\n"
            "- [ ] Reviewed by 1+ teammate\n"
            "- [ ] Final version linked\n"
            "- [ ] Shared with team"
        ),
        priority="P3",
        is_onboarding=True,
    ),
    CardTemplate(
        id="research",
        name="Research Task",
        task_type="Docs",
        description=(
            "1. Define research question\n"
            "2. Find 3+ sources (papers, videos, forums)\n"
            "3. Summarize key findings\n"
            "4. Present to team (5 min)"
        ),
        acceptance_criteria=(
            "- [ ] Research summary (1 page)\n"
            "- [ ] Sources linked\n"
            "- [ ] Key takeaways listed\n"
            "- [ ] Shared in Discord/meeting"
        ),
        priority="P3",
        is_onboarding=True,
    ),
]


def get_template(template_id: str) -> Optional[CardTemplate]:
    return next((t for t in CARD_TEMPLATES if t.id == template_id), None)


def get_onboarding_templates() -> List[CardTemplate]:
    return [t for t in CARD_TEMPLATES if t.is_onboarding]
