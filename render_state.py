from context import ExecutionContext
from evaluator import MilkdropEval


class PresetCode:
    """Equation code and starting parameters of one preset.

    Filled in by whatever reads preset files; only the fields the
    equations need are kept here.
    """

    def __init__(
        self,
        per_frame_init_code="",
        per_frame_code="",
        per_pixel_code="",
        decay=1.0,
        rot=0.0,
        rot_cx=0.5,
        rot_cy=0.5,
        x_push=0.0,
        y_push=0.0,
        warp_amount=1.0,
        stretch_x=1.0,
        stretch_y=1.0,
        wave_r=1.0,
        wave_g=1.0,
        wave_b=1.0,
        name="",
    ):
        self.name = name
        self.per_frame_init_code = per_frame_init_code
        self.per_frame_code = per_frame_code
        self.per_pixel_code = per_pixel_code
        self.decay = decay
        self.rot = rot
        self.rot_cx = rot_cx
        self.rot_cy = rot_cy
        self.x_push = x_push
        self.y_push = y_push
        self.warp_amount = warp_amount
        self.stretch_x = stretch_x
        self.stretch_y = stretch_y
        self.wave_r = wave_r
        self.wave_g = wave_g
        self.wave_b = wave_b


class RenderState:
    """Per-preset equation state driven by the renderer once per frame."""

    def __init__(self, rng=None):
        self.context = ExecutionContext()
        self.per_frame_init_eval = MilkdropEval(rng=rng)
        self.per_frame_eval = MilkdropEval(rng=rng)
        self.per_pixel_eval = MilkdropEval(rng=rng)
        self.preset = None
        self.frame_count = 0
        self.total_time = 0.0
        self.per_frame_init_done = False
        self.last_error = ""

    def reset(self):
        self.context.reset()
        self.frame_count = 0
        self.total_time = 0.0
        self.per_frame_init_done = False
        self.preset = None
        self.per_frame_init_eval.clear()
        self.per_frame_eval.clear()
        self.per_pixel_eval.clear()

    def has_preset(self):
        return self.preset is not None

    def load_preset(self, preset) -> bool:
        self.reset()
        self.last_error = ""

        sections = (
            ("per-frame init", self.per_frame_init_eval, preset.per_frame_init_code),
            ("per-frame", self.per_frame_eval, preset.per_frame_code),
            ("per-pixel", self.per_pixel_eval, preset.per_pixel_code),
        )
        for section, evaluator, code in sections:
            if not code.strip():
                continue
            if not evaluator.compile_block(code):
                self.last_error = f"{section} code: {evaluator.last_error}"
                # a preset that does not compile renders as a no-op
                self.reset()
                return False

        ctx = self.context
        ctx.zoom = preset.decay
        ctx.rot = preset.rot
        ctx.cx = preset.rot_cx
        ctx.cy = preset.rot_cy
        ctx.dx = preset.x_push
        ctx.dy = preset.y_push
        ctx.warp = preset.warp_amount
        ctx.sx = preset.stretch_x
        ctx.sy = preset.stretch_y
        ctx.wave_r = preset.wave_r
        ctx.wave_g = preset.wave_g
        ctx.wave_b = preset.wave_b
        ctx.wave_a = 1.0

        self.preset = preset
        return True

    def update_audio_data(self, bass, mid, treb, bass_att, mid_att, treb_att):
        ctx = self.context
        ctx.bass = bass
        ctx.mid = mid
        ctx.treb = treb
        ctx.bass_att = bass_att
        ctx.mid_att = mid_att
        ctx.treb_att = treb_att

    def execute_frame(self, delta_time):
        if self.preset is None:
            return self.context

        self.total_time += delta_time
        self.context.time = self.total_time
        self.context.frame = float(self.frame_count)

        if not self.per_frame_init_done:
            self.per_frame_init_eval.execute(self.context)
            self.per_frame_init_done = True

        self.per_frame_eval.execute(self.context)
        self.frame_count += 1
        return self.context

    def execute_pixel(self, x, y, rad, ang):
        ctx = self.context
        ctx.x = x
        ctx.y = y
        ctx.rad = rad
        ctx.ang = ang
        if self.preset is not None:
            self.per_pixel_eval.execute(ctx)
        return ctx
