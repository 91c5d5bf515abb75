"""Unit tests for state, effect and handler collection."""

from collections.abc import Callable

import pytest

from frameshift.analyzers.ast_parser import find_all
from frameshift.analyzers.bindings import BindingCollector, numeric_value, update_shape
from frameshift.config import TimingConfig
from frameshift.models import SourceModule, StateBinding, StateRole, TriggerKind

ModuleFactory = Callable[[str], SourceModule]


def _component(body: str) -> str:
    return f"function Demo() {{\n{body}\n  return <div />;\n}}\n"


def _binding(module: SourceModule, name: str) -> StateBinding:
    return next(b for b in module.state_bindings if b.name == name)


class TestNumericValue:
    """Tests for constant folding of timer delays."""

    def test_literal_and_arithmetic(self, make_module: ModuleFactory) -> None:
        """Test literals and simple arithmetic."""
        module = make_module("x = 2 * (250 + 250);\n")
        expression = find_all(module.root, "binary_expression")[0]

        assert numeric_value(module, expression, {}) == 1000

    def test_known_constant(self, make_module: ModuleFactory) -> None:
        """Test that known constants are substituted."""
        module = make_module("x = DELAY / 2;\n")
        expression = find_all(module.root, "binary_expression")[0]

        assert numeric_value(module, expression, {"DELAY": 3000}) == 1500

    def test_unknown_identifier(self, make_module: ModuleFactory) -> None:
        """Test that unknown names are not evaluated."""
        module = make_module("x = speed * 2;\n")
        expression = find_all(module.root, "binary_expression")[0]

        assert numeric_value(module, expression, {}) is None


class TestUpdateShape:
    """Tests for setter argument shapes."""

    @pytest.mark.parametrize(
        ("expression", "kind", "step"),
        [
            ("n + 1", "increment", "1"),
            ("2 + n", "increment", "2"),
            ("n - 5", "increment", "-5"),
            ("!n", "toggle", None),
            ("true", "literal", None),
            ("[...n, 1]", "collection", None),
            ("n.filter(Boolean)", "collection", None),
            ("{ x: n.x + vx, y: n.y }", "positional", None),
            ("compute()", "unknown", None),
        ],
    )
    def test_shapes(
        self, make_module: ModuleFactory, expression: str, kind: str, step: str | None
    ) -> None:
        """Test the shape of common updates."""
        module = make_module(f"set(({expression}));\n")
        argument = find_all(module.root, "parenthesized_expression")[0]

        shape = update_shape(module, argument, "n")

        assert shape.kind == kind
        assert shape.step == step

    def test_modulo_with_length(self, make_module: ModuleFactory) -> None:
        """Test that `% items.length` records the bounding array."""
        module = make_module("set(((n + 1) % items.length));\n")
        argument = find_all(module.root, "parenthesized_expression")[0]

        shape = update_shape(module, argument, "n")

        assert shape.kind == "periodic"
        assert shape.length_of == "items"

    def test_ternary_reset(self, make_module: ModuleFactory) -> None:
        """Test that `n >= 9 ? 0 : n + 1` wraps at 10."""
        module = make_module("set((n >= 9 ? 0 : n + 1));\n")
        argument = find_all(module.root, "parenthesized_expression")[0]

        shape = update_shape(module, argument, "n")

        assert shape.kind == "periodic"
        assert shape.modulus == "10"


class TestStateRoles:
    """Tests for role inference from setter sites and triggers."""

    def test_interval_counter(self, make_module: ModuleFactory, counter_source: str) -> None:
        """Test that an interval-incremented counter is a timer-driven Counter."""
        module = make_module(counter_source)

        BindingCollector().collect(module)

        binding = _binding(module, "count")
        assert binding.role is StateRole.COUNTER
        assert binding.setter == "setCount"
        assert binding.interval_ms == 1000
        assert binding.step == "1"
        assert binding.initial_value_expression == "0"
        assert binding.is_timer_driven

    def test_interval_toggle(self, make_module: ModuleFactory, toggle_source: str) -> None:
        """Test that a negated flag on an interval is a Toggle."""
        module = make_module(toggle_source)

        BindingCollector().collect(module)

        binding = _binding(module, "visible")
        assert binding.role is StateRole.TOGGLE
        assert binding.interval_ms == 500

    def test_one_shot_timeout(self, make_module: ModuleFactory, timeout_source: str) -> None:
        """Test that a single timeout assignment becomes a schedule."""
        module = make_module(timeout_source)

        BindingCollector().collect(module)

        binding = _binding(module, "shown")
        assert binding.schedule == [(2000, "true")]
        assert binding.role is StateRole.TOGGLE
        assert not binding.is_timer_driven

    def test_frame_loop(self, make_module: ModuleFactory) -> None:
        """Test that requestAnimationFrame loops run at the configured rate."""
        module = make_module(
            _component(
                "  const [angle, setAngle] = useState(0);\n"
                "  useEffect(() => {\n"
                "    let raf;\n"
                "    const loop = () => {\n"
                "      setAngle((a) => a + 2);\n"
                "      raf = requestAnimationFrame(loop);\n"
                "    };\n"
                "    raf = requestAnimationFrame(loop);\n"
                "    return () => cancelAnimationFrame(raf);\n"
                "  }, []);"
            )
        )

        BindingCollector(TimingConfig(frame_loop_hz=50)).collect(module)

        binding = _binding(module, "angle")
        assert binding.role is StateRole.COUNTER
        assert binding.frame_loop
        assert binding.interval_ms == 20
        assert binding.step == "2"

    def test_constant_delay_resolved(self, make_module: ModuleFactory) -> None:
        """Test that named delay constants are resolved."""
        module = make_module(
            "const STEP_MS = 250;\n"
            + _component(
                "  const [n, setN] = useState(0);\n"
                "  useEffect(() => {\n"
                "    const id = setInterval(() => setN((v) => v + 1), STEP_MS * 2);\n"
                "    return () => clearInterval(id);\n"
                "  }, []);"
            )
        )

        BindingCollector().collect(module)

        assert _binding(module, "n").interval_ms == 500

    def test_unresolved_delay_uses_default(self, make_module: ModuleFactory) -> None:
        """Test that unknown delays fall back to the configured default."""
        module = make_module(
            _component(
                "  const [n, setN] = useState(0);\n"
                "  useEffect(() => {\n"
                "    const id = setInterval(() => setN((v) => v + 1), props.delay);\n"
                "    return () => clearInterval(id);\n"
                "  }, []);"
            )
        )

        BindingCollector(TimingConfig(default_interval_ms=750)).collect(module)

        assert _binding(module, "n").interval_ms == 750

    def test_self_rescheduling_timeout_is_periodic(self, make_module: ModuleFactory) -> None:
        """Test that a timeout re-armed on every state change acts as an interval."""
        module = make_module(
            _component(
                "  const [step, setStep] = useState(0);\n"
                "  useEffect(() => {\n"
                "    const t = setTimeout(() => setStep(step + 1), 300);\n"
                "    return () => clearTimeout(t);\n"
                "  }, [step]);"
            )
        )

        BindingCollector().collect(module)

        binding = _binding(module, "step")
        assert binding.role is StateRole.COUNTER
        assert binding.interval_ms == 300

    def test_mount_collection(self, make_module: ModuleFactory) -> None:
        """Test that a mount effect's construction is lifted."""
        module = make_module(
            _component(
                "  const [stars, setStars] = useState([]);\n"
                "  useEffect(() => {\n"
                "    const list = [];\n"
                "    for (let i = 0; i < 5; i++) list.push(i);\n"
                "    setStars(list);\n"
                "  }, []);"
            )
        )

        BindingCollector().collect(module)

        binding = _binding(module, "stars")
        assert binding.role is StateRole.COLLECTION
        assert binding.collection_expression is not None
        assert "const list = [];" in binding.collection_expression
        assert "return list;" in binding.collection_expression

    def test_click_counter_is_interaction_driven(self, make_module: ModuleFactory) -> None:
        """Test that event updates mark the binding as interaction driven."""
        module = make_module(
            "function Clicker() {\n"
            "  const [clicks, setClicks] = useState(0);\n"
            "  return <button onClick={() => setClicks(clicks + 1)}>{clicks}</button>;\n"
            "}\n"
        )

        BindingCollector().collect(module)

        binding = _binding(module, "clicks")
        assert binding.role is StateRole.COUNTER
        assert binding.interaction_driven
        assert not binding.is_timer_driven

    def test_literal_updates_keep_initial_role(self, make_module: ModuleFactory) -> None:
        """Test that a flag only ever set to literals stays a Toggle."""
        module = make_module(
            "function Hover() {\n"
            "  const [hovered, setHovered] = useState(false);\n"
            "  return <div onMouseEnter={() => setHovered(true)} />;\n"
            "}\n"
        )

        BindingCollector().collect(module)

        assert _binding(module, "hovered").role is StateRole.TOGGLE

    def test_navigation_state(self, make_module: ModuleFactory) -> None:
        """Test that slide state indexing an array is a SelectionIndex."""
        module = make_module(
            "const slides = ['a', 'b'];\n"
            "function Deck() {\n"
            "  const [currentSlide, setCurrentSlide] = useState(0);\n"
            "  return <div onClick={() => setCurrentSlide(1)}>{slides[currentSlide]}</div>;\n"
            "}\n"
        )

        BindingCollector().collect(module)

        binding = _binding(module, "currentSlide")
        assert binding.role is StateRole.SELECTION_INDEX
        assert binding.length_of == "slides"

    def test_no_setter_calls_uses_initial(self, make_module: ModuleFactory) -> None:
        """Test that state that is never set keeps its initial role."""
        module = make_module(_component("  const [pos] = useState({ x: 0, y: 0 });"))

        BindingCollector().collect(module)

        binding = _binding(module, "pos")
        assert binding.setter is None
        assert binding.role is StateRole.POSITIONAL_COORDINATE

    def test_unknown_initial(self, make_module: ModuleFactory, fetch_source: str) -> None:
        """Test that state set only by reference is unclassifiable."""
        module = make_module(fetch_source)

        BindingCollector().collect(module)

        assert _binding(module, "data").role is StateRole.UNCLASSIFIABLE

    def test_lazy_initializer(self, make_module: ModuleFactory) -> None:
        """Test that function initializers are flagged lazy."""
        module = make_module(_component("  const [seed] = useState(() => Math.random());"))

        BindingCollector().collect(module)

        assert _binding(module, "seed").initializer_is_lazy


class TestEffectsAndHandlers:
    """Tests for effect and handler collection."""

    def test_interval_effect(self, make_module: ModuleFactory, counter_source: str) -> None:
        """Test that timer effects are INTERVAL with their period."""
        module = make_module(counter_source)

        BindingCollector().collect(module)

        effect = module.effect_bindings[0]
        assert effect.trigger is TriggerKind.INTERVAL
        assert effect.interval_ms == 1000
        assert effect.states == ["count"]

    def test_mount_and_tracked_effects(self, make_module: ModuleFactory) -> None:
        """Test mount-only and dependency-tracked triggers."""
        module = make_module(
            _component(
                "  useEffect(() => { document.title = 'x'; }, []);\n"
                "  useEffect(() => { document.title = title; }, [title]);"
            )
        )

        BindingCollector().collect(module)

        triggers = [e.trigger for e in module.effect_bindings]
        assert triggers == [TriggerKind.MOUNT_ONLY, TriggerKind.DEPENDENCY_TRACKED]

    def test_listener_events(self, make_module: ModuleFactory) -> None:
        """Test that registered event names are recorded."""
        module = make_module(
            _component(
                "  useEffect(() => {\n"
                "    window.addEventListener('keydown', onKey);\n"
                "  }, []);"
            )
        )

        BindingCollector().collect(module)

        assert module.effect_bindings[0].listeners == ["keydown"]

    def test_handlers(self, make_module: ModuleFactory, handlers_source: str) -> None:
        """Test that handler functions and their attributes are found."""
        module = make_module(handlers_source)

        BindingCollector().collect(module)

        handlers = {h.name: h for h in module.handler_bindings}
        assert set(handlers) == {"handleClick", "handleHover"}
        assert handlers["handleClick"].attributes == ["onClick"]
        assert handlers["handleHover"].kind == "arrow"
