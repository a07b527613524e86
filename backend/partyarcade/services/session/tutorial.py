"""Tutorial descriptors shown before each mini-game.

Every game describes itself with an objective and an optional tip; the
HTML layout is shared so all tutorial screens look alike.
"""
from typing import NamedTuple, Optional

from jinja2 import Environment

_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)

_TEMPLATE = _env.from_string("""\
<div class="space-y-5" data-technology="{{ technology }}" data-input="{{ input_kind }}">
  <div class="bg-orange-50 border-2 border-primary rounded-xl p-4">
    <p class="text-lg">
      <strong>Objective:</strong><br>
      <span class="mt-2 block text-center">{{ objective }}</span>
    </p>
  </div>
{% if tip %}
  <div class="bg-lime-100 border-2 border-lime-400 rounded-xl p-3 mt-4">
    <p class="text-base"><strong>Tip:</strong> {{ tip }}</p>
  </div>
{% endif %}
</div>
""")


class Tutorial(NamedTuple):
    title: str
    html: str

    def to_dict(self):
        return {'title': self.title, 'html': self.html}


def render_tutorial(objective: str, tip: Optional[str] = None,
                    technology: str = 'ML5', input_kind: str = 'Webcam') -> str:
    return _TEMPLATE.render(objective=objective, tip=tip, technology=technology, input_kind=input_kind)


def webcam_tutorial(title: str, objective: str, tip: Optional[str] = None) -> Tutorial:
    return Tutorial(title, render_tutorial(objective, tip, technology='ML5', input_kind='Webcam'))


def makey_makey_tutorial(title: str, objective: str, tip: Optional[str] = None) -> Tutorial:
    return Tutorial(title, render_tutorial(objective, tip, technology='MakeyMakey', input_kind='MakeyMakey'))


def hybrid_tutorial(title: str, objective: str, tip: Optional[str] = None) -> Tutorial:
    return Tutorial(title, render_tutorial(objective, tip, technology='ML5+MakeyMakey', input_kind='Both'))
