# tests/helpers.py — v1
"""Sample project files and a scripted reasoning client shared by tests."""

from __future__ import annotations

from typing import Callable

from buildcheck.core.models import InputFile
from buildcheck.llm.base_client import BaseLLMClient
from buildcheck.llm.models import LLMResponse, Message

SAMPLE_IFC = """ISO-10303-21;
HEADER;
FILE_DESCRIPTION(('ViewDefinition [CoordinationView]'),'2;1');
FILE_SCHEMA(('IFC4'));
ENDSEC;
DATA;
#1=IFCPROJECT('0001',$,'Casa Azul',$,$,$,$,$,$);
#10=IFCBUILDINGSTOREY('S0',$,'Piso 0',$,$,$,$,$,.ELEMENT.,0.);
#11=IFCBUILDINGSTOREY('S1',$,'Piso 1',$,$,$,$,$,.ELEMENT.,3.);
#20=IFCFOOTING('F-01',$,'Sapata 1',$,$,$,$,$,.PAD_FOOTING.);
#21=IFCCOLUMN('C-01',$,'Pilar 1',$,$,$,$,$);
#22=IFCSLAB('L-01',$,'Laje 1',$,$,$,$,$,.FLOOR.);
#23=IFCWALL('W-01',$,'Parede, exterior',$,$,$,$,$);
#24=IFCWINDOW('J-01',$,'Janela 1',$,$,$,$,$,
  $,$,$,$,$);
#30=IFCRELCONTAINEDINSPATIALSTRUCTURE('R0',$,$,$,(#20,#21),#10);
#31=IFCRELCONTAINEDINSPATIALSTRUCTURE('R1',$,$,$,(#22,#23,#24),#11);
ENDSEC;
END-ISO-10303-21;
"""

SAMPLE_BOQ_CSV = """Code;Description;Unit;Quantity;Unit price
;Estruturas;;;
E01;Betao C25/30 em pilares;m3;12.5;110.00
E02;Aco A500 em armaduras;kg;1250;1.20
;Alvenarias;;;
A01;Parede de tijolo 15 cm;m2;80;24.50
"""


def make_file(name: str, content: bytes | str = b"", last_modified: int = 1_700_000_000_000) -> InputFile:
    data = content.encode("utf-8") if isinstance(content, str) else content
    return InputFile(name=name, size=len(data), last_modified=last_modified, content=data)


class ScriptedLLM(BaseLLMClient):
    """Answers each call from the first script entry whose key occurs in the system prompt.

    Values are response texts or callables taking the user message and
    returning one. Unscripted calls get ``default``.
    """

    def __init__(
        self,
        script: dict[str, str | Callable[[str], str]] | None = None,
        default: str = "{}",
    ) -> None:
        self.script = dict(script or {})
        self.default = default
        self.calls: list[dict] = []

    @property
    def provider_name(self) -> str:
        return "scripted"

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
        model: str | None = None,
        thinking_budget: int | None = None,
        cancel=None,
    ) -> LLMResponse:
        user = messages[-1].content if messages else ""
        self.calls.append({"system": system or "", "user": user, "model": model})
        reply = self.default
        for key, value in self.script.items():
            if key in (system or ""):
                reply = value(user) if callable(value) else value
                break
        return LLMResponse(
            content=reply,
            input_tokens=100,
            output_tokens=50,
            model=model or "scripted-model",
            provider="scripted",
            latency_ms=1,
        )


