import pytest

from greetmotion.config import reset_config

BIRTHDAY_JOB = """\
base_video = "template.mp4"
duration = 10

[output]
width = 720
height = 1280

[variables]
name = "Ayu"

[[images]]
path = "photos/ayu.png"
start = 1
end = 8
width = 480
y = "main_h*0.3"
animation = { in = { kind = "zoom", duration = 0.8, overshoot = 1.15 }, hold = 5 }

[[texts]]
text = "Happy birthday, {name}!"
start = 1.5
end = 9
font_size = 72
y = "h*0.75"
idle = { amplitude = 8, speed = 0.5 }

[texts.animation]
hold = 5
in = { kind = "slide-up", duration = 1, easing = "ease-out" }
out = { kind = "fade", duration = 1 }

[audio]
path = "music/happy.mp3"
fade_in = 1
fade_out = 2
"""


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def job_file(tmp_path):
    """A birthday greeting job written to a temporary directory."""
    path = tmp_path / "birthday.toml"
    path.write_text(BIRTHDAY_JOB)
    return path
