"""Document model produced by the specification parser"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from specbind.parser.blocks import Block, Form, Grid


class StepType(Enum):
    GIVEN = "given"
    WHEN = "when"
    THEN = "then"
    UNKNOWN = "unknown"


@dataclass
class Step:
    type: StepType
    text: str
    keyword: str = ""
    block: Optional[Block] = None

    @property
    def body(self) -> str:
        """The step text without its leading keyword"""
        if self.keyword and self.text.lower().startswith(self.keyword.lower()):
            return self.text[len(self.keyword):].strip()
        return self.text.strip()


@dataclass
class Scenario:
    name: str
    steps: List[Step] = field(default_factory=list)

    def add_step(self, step_type: StepType, text: str, keyword: str = "",
                 block: Optional[Block] = None) -> Step:
        step = Step(type=step_type, text=text, keyword=keyword, block=block)
        self.steps.append(step)
        return step


@dataclass
class Feature:
    name: str
    description: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    scenarios: List[Scenario] = field(default_factory=list)

    def get_scenario(self, name: str) -> Scenario:
        for scenario in self.scenarios:
            if scenario.name == name:
                return scenario
        raise KeyError(name)


@dataclass
class SpecificationDocument:
    feature: Optional[Feature] = None
    scenarios: List[Scenario] = field(default_factory=list)
    language: str = "en"
    source: str = field(default="", compare=False)

    def get_scenario(self, name: str) -> Scenario:
        for scenario in self.scenarios:
            if scenario.name == name:
                return scenario
        raise KeyError(name)

    @property
    def scenario_names(self) -> List[str]:
        return [scenario.name for scenario in self.scenarios]

    def to_dict(self) -> Dict:
        """Plain data view of the document, used for dumping it"""
        data: Dict = {'language': self.language}

        if self.feature is not None:
            data['feature'] = {
                'name': self.feature.name,
                'description': self.feature.description,
                'headers': dict(self.feature.headers),
            }

        data['scenarios'] = [
            {'name': scenario.name, 'steps': [_step_to_dict(step) for step in scenario.steps]}
            for scenario in self.scenarios
        ]
        return data


def _step_to_dict(step: Step) -> Dict:
    data: Dict = {'type': step.type.value, 'text': step.text}

    if isinstance(step.block, Form):
        data['form'] = [[name, value] for name, value in step.block.fields]
    elif isinstance(step.block, Grid):
        data['grid'] = {'header': list(step.block.header), 'rows': [list(row) for row in step.block.rows]}

    return data
