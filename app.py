"""
CodeLesson - Interactive Python Lessons

Streamlit application for learning Python through graded exercises,
quizzes and interactive tables, with progress saved between sessions.

Usage:
    streamlit run app.py
"""

import asyncio

import streamlit as st
from streamlit_autorefresh import st_autorefresh

from codelesson import config
from codelesson.classroom import (
    CoverageController,
    CurriculumLoader,
    MatchingController,
    ObservationController,
    Navigator,
    PredictionController,
    ProgressDatabase,
    ProgressStore,
    QuizController,
    QuizPhase,
    TestRunner,
    quiz_completed,
    reset_lesson_progress,
    all_tests_passed,
)
from codelesson.grading import SubprocessSandbox
from codelesson.schemas import QuizAttemptState, TestingState
from codelesson.viewer import get_results_css, render_grading_outcome, render_penalty_countdown


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

config.setup_logging()

st.set_page_config(
    page_title="CodeLesson",
    page_icon="🐍",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "loader" not in st.session_state:
        if config.LESSONS_PATH.is_dir():
            st.session_state.loader = CurriculumLoader(config.LESSONS_PATH)
        else:
            st.session_state.loader = None

    if "database" not in st.session_state:
        st.session_state.database = ProgressDatabase(config.PROGRESS_DB, config.STUDENT_ID)

    if "sandbox" not in st.session_state:
        st.session_state.sandbox = SubprocessSandbox(
            config.PYTHON_EXECUTABLE, config.SANDBOX_TIMEOUT_SECONDS
        )

    if "navigator" not in st.session_state and st.session_state.loader:
        st.session_state.navigator = Navigator(
            st.session_state.loader,
            st.session_state.database,
        )

    if "stores" not in st.session_state:
        st.session_state.stores = {}

    if "controllers" not in st.session_state:
        st.session_state.controllers = {}

    if "current_lesson" not in st.session_state:
        if st.session_state.loader:
            st.session_state.current_lesson = st.session_state.navigator.get_first_lesson_key()
        else:
            st.session_state.current_lesson = None


def get_controller(unit_id: str, lesson_id: str, section):
    """One controller (and progress store) per section, kept across reruns."""
    key = (unit_id, lesson_id, section.id)
    controllers = st.session_state.controllers
    if key in controllers:
        return controllers[key]

    database = st.session_state.database
    sandbox = st.session_state.sandbox
    store_kwargs = {"debounce_seconds": config.SAVE_DEBOUNCE_SECONDS}

    if section.kind in ("MultipleChoice", "MultipleSelection"):
        store = ProgressStore(database, QuizAttemptState(), quiz_completed, **store_kwargs)
        controller = QuizController(store, unit_id, lesson_id, section, penalty_seconds=config.PENALTY_SECONDS)
    elif section.kind == "Matching":
        store = MatchingController.new_store(database, section, **store_kwargs)
        controller = MatchingController(store, unit_id, lesson_id, section)
    elif section.kind == "Coverage":
        store = CoverageController.new_store(database, section, **store_kwargs)
        controller = CoverageController(store, sandbox, unit_id, lesson_id, section)
    elif section.kind == "Prediction":
        store = PredictionController.new_store(database, section, **store_kwargs)
        controller = PredictionController(store, sandbox, unit_id, lesson_id, section)
    elif section.kind == "Observation":
        store = ObservationController.new_store(database, section, **store_kwargs)
        controller = ObservationController(store, sandbox, unit_id, lesson_id, section)
    elif section.kind == "Testing":
        store = ProgressStore(
            database, TestingState(code=section.starter_code), all_tests_passed, **store_kwargs
        )
        controller = TestRunner(store, sandbox, unit_id, lesson_id, section)
    else:
        return None

    st.session_state.stores[key] = store
    controllers[key] = controller
    return controller


# -----------------------------------------------------------------------------
# Sidebar: Curriculum Tree
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with curriculum tree and progress."""
    st.sidebar.title("🐍 CodeLesson")

    if not st.session_state.loader:
        st.sidebar.error(f"Lessons not found at {config.LESSONS_PATH}.")
        return

    nav = st.session_state.navigator
    stats = nav.get_progress_summary()
    st.sidebar.markdown(f"""
    **Progress:** {stats['completed']}/{stats['total_lessons']} lessons ({stats['completion_percent']}%)
    """)
    st.sidebar.progress(stats['completion_percent'] / 100)
    st.sidebar.divider()

    for nav_unit in nav.get_navigation_tree():
        unit = nav_unit.unit
        unit_progress = f"({nav_unit.completed_count}/{nav_unit.total_count})"
        with st.sidebar.expander(f"**{unit.title}** {unit_progress}", expanded=True):
            for nav_lesson in nav_unit.lessons:
                lesson = nav_lesson.lesson
                done = len(nav_lesson.completed_sections & set(nav_lesson.tracked_sections))
                indicator = "✓" if nav_lesson.is_complete else "○"
                label = f"{indicator} {lesson.title} ({done}/{len(nav_lesson.tracked_sections)})"
                if st.button(label, key=f"lesson_{unit.id}_{lesson.id}", use_container_width=True):
                    select_lesson(unit.id, lesson.id)


def select_lesson(unit_id: str, lesson_id: str):
    """Select a lesson and update state."""
    flush_stores()
    st.session_state.current_lesson = (unit_id, lesson_id)
    st.rerun()


def flush_stores():
    for store in st.session_state.stores.values():
        store.flush()


# -----------------------------------------------------------------------------
# Section widgets
# -----------------------------------------------------------------------------

def render_section_header(unit_id: str, lesson_id: str, section):
    nav = st.session_state.navigator
    indicator = nav.get_status_indicator(unit_id, lesson_id, section.id)
    title = section.title if section.kind == "Information" else f"{indicator} {section.title}"
    st.subheader(title)
    if section.content:
        st.markdown(section.content)


def reset_widgets(prefix: str):
    """Drop remembered widget values so the next run renders from saved state."""
    for key in [k for k in st.session_state.keys() if isinstance(k, str) and k.startswith(prefix)]:
        del st.session_state[key]


def render_quiz(controller: QuizController):
    section = controller.section
    state = controller.state
    locked = state.is_submitted
    key = f"quiz_{controller.lesson_id}_{section.id}"

    if controller.multiple:
        for index, option in enumerate(section.options):
            checked = index in state.selected_indices
            if st.checkbox(option, value=checked, key=f"{key}::{index}", disabled=locked) != checked:
                controller.select(index)
                st.rerun()
    else:
        current = state.selected_indices[0] if state.selected_indices else None
        picked = st.radio(
            "Choose one",
            list(range(len(section.options))),
            index=current,
            format_func=lambda i: section.options[i],
            key=f"{key}::choice",
            disabled=locked,
            label_visibility="collapsed",
        )
        if picked is not None and picked != current:
            controller.select(picked)
            st.rerun()

    phase = controller.phase
    if phase == QuizPhase.UNANSWERED:
        if st.button("Submit Answer", key=f"{key}_submit", disabled=not state.selected_indices):
            controller.submit()
            st.rerun()
        return

    feedback = section.feedback
    if phase == QuizPhase.CORRECT:
        st.success(feedback.correct if feedback else "Correct!")
        return

    st.error(feedback.incorrect if feedback else "Not quite.")
    remaining = controller.remaining_penalty_seconds
    if remaining > 0:
        st_autorefresh(interval=1000, key=f"{key}_countdown")
    if st.button(render_penalty_countdown(remaining), key=f"{key}_retry", disabled=remaining > 0):
        controller.try_again()
        reset_widgets(f"{key}::")
        st.rerun()


def render_matching(controller: MatchingController):
    section = controller.section
    state = controller.state
    option_text = {o.id: o.text for o in section.options}
    placeholder = "(choose)"
    key = f"match_{controller.lesson_id}_{section.id}"

    for prompt in section.prompts:
        current = state.user_matches.get(prompt.id)
        choices = [placeholder] + [o.id for o in section.options]
        verdict = controller.slot_is_correct(prompt.id)
        label = prompt.text if verdict is None else f"{'✓' if verdict else '✗'} {prompt.text}"
        picked = st.selectbox(
            label,
            choices,
            index=choices.index(current) if current else 0,
            format_func=lambda oid: option_text.get(oid, placeholder),
            key=f"{key}::{prompt.id}",
        )
        if picked != (current or placeholder):
            if picked == placeholder:
                controller.clear(prompt.id)
            else:
                # may evict the option from another slot
                controller.move(picked, prompt.id)
            reset_widgets(f"{key}::")
            st.rerun()

    if controller.bank:
        st.caption("Unplaced: " + ", ".join(option_text[o] for o in controller.bank))


def render_coverage(controller: CoverageController):
    section = controller.section
    st.code(section.code, language="python")
    state = controller.state

    for challenge in section.coverage_challenges:
        row = state.challenge_states.get(challenge.id)
        cols = st.columns(len(section.input_params) + 2)
        for col, param in zip(cols, section.input_params):
            value = row.inputs.get(param.name, "") if row else ""
            typed = col.text_input(
                param.name, value=value, placeholder=param.placeholder,
                key=f"cov_{section.id}_{challenge.id}_{param.name}",
            )
            if typed != value:
                controller.set_input(challenge.id, param.name, typed)
        cols[-2].markdown(f"Expected: `{challenge.expected_output}`")
        if cols[-1].button("Run", key=f"cov_{section.id}_{challenge.id}_run"):
            asyncio.run(controller.run_challenge(challenge.id))
            st.rerun()
        if row and row.actual_output is not None:
            (st.success if row.is_correct else st.warning)(f"Output: {row.actual_output}")


def render_prediction(controller: PredictionController):
    section = controller.section
    st.code(section.function_code, language="python")
    state = controller.state

    for index, row in enumerate(section.rows):
        prediction = state.predictions.get(index)
        answer = prediction.user_answer if prediction else ""
        cols = st.columns([3, 3, 1])
        cols[0].markdown(f"Inputs: `{', '.join(repr(v) for v in row.inputs)}`")
        typed = cols[1].text_input("Prediction", value=answer, key=f"pred_{section.id}_{index}")
        if typed != answer:
            controller.set_prediction(index, typed)
        if cols[2].button("Check", key=f"pred_{section.id}_{index}_run"):
            asyncio.run(controller.check_prediction(index))
            st.rerun()
        if prediction and prediction.actual_output is not None:
            (st.success if prediction.is_correct else st.warning)(f"Actual: {prediction.actual_output}")

    if controller.is_completed and section.completion_message:
        st.info(section.completion_message)


def render_testing(controller: TestRunner):
    section = controller.section
    state = controller.state
    code = st.text_area(
        "Your code", value=state.code, height=220, key=f"code_{controller.lesson_id}_{section.id}"
    )
    if code != state.code:
        controller.save_code(code)

    if st.button("Run Tests", key=f"run_{section.id}", disabled=controller.is_running, type="primary"):
        with st.spinner("Running tests..."):
            asyncio.run(controller.run_tests(code))
        st.rerun()

    st.markdown(get_results_css(), unsafe_allow_html=True)
    st.markdown(render_grading_outcome(controller.display_outcome), unsafe_allow_html=True)


def render_observation(controller: ObservationController):
    section = controller.section
    state = controller.state
    if section.example.description:
        st.markdown(section.example.description)
    code = st.text_area(
        "Example", value=state.code, height=180, key=f"obs_{controller.lesson_id}_{section.id}"
    )
    if code != state.code:
        controller.save_code(code)

    if st.button("Run", key=f"obs_{section.id}_run"):
        asyncio.run(controller.run(code))
        st.rerun()

    if state.output is not None:
        if state.error:
            st.error(state.output)
        else:
            st.code(state.output or "(no output)", language="text")


SECTION_RENDERERS = {
    "MultipleChoice": render_quiz,
    "MultipleSelection": render_quiz,
    "Matching": render_matching,
    "Coverage": render_coverage,
    "Prediction": render_prediction,
    "Observation": render_observation,
    "Testing": render_testing,
}


# -----------------------------------------------------------------------------
# Main Content: Lesson View
# -----------------------------------------------------------------------------

def render_lesson_view():
    """Render the current lesson's sections."""
    if not st.session_state.loader:
        st.error("No lessons to show. Set CODELESSON_LESSONS to a directory of unit YAML files.")
        return

    if not st.session_state.current_lesson:
        st.info("Select a lesson from the sidebar to begin.")
        return

    unit_id, lesson_id = st.session_state.current_lesson
    lesson = st.session_state.loader.get_lesson(unit_id, lesson_id)
    if not lesson:
        st.error(f"Lesson not found: {unit_id}/{lesson_id}")
        return

    render_navigation_bar(unit_id, lesson_id)
    st.title(lesson.title)

    for section in lesson.sections:
        render_section_header(unit_id, lesson_id, section)
        controller = get_controller(unit_id, lesson_id, section)
        if controller is not None:
            SECTION_RENDERERS[section.kind](controller)
        st.divider()


def render_navigation_bar(unit_id: str, lesson_id: str):
    """Render navigation bar with prev/next buttons."""
    nav = st.session_state.navigator
    pos, total = nav.get_lesson_position(unit_id, lesson_id)
    prev_key = nav.get_previous_lesson_key(unit_id, lesson_id)
    next_key = nav.get_next_lesson_key(unit_id, lesson_id)

    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        if prev_key and st.button("← Previous", use_container_width=True):
            select_lesson(*prev_key)
    with col2:
        st.markdown(f"<center>Lesson {pos} of {total}</center>", unsafe_allow_html=True)
    with col3:
        if next_key and st.button("Next →", use_container_width=True):
            select_lesson(*next_key)
        if st.button("Reset lesson", key=f"reset_{unit_id}_{lesson_id}", use_container_width=True):
            reset_lesson(unit_id, lesson_id)

    st.divider()


def reset_lesson(unit_id: str, lesson_id: str):
    """Put every section of the lesson back to its starting state."""
    lesson = st.session_state.loader.get_lesson(unit_id, lesson_id)
    for section in lesson.sections:
        get_controller(unit_id, lesson_id, section)
    reset_lesson_progress(st.session_state.stores, unit_id, lesson_id)

    for key in [(unit_id, lesson_id, section.id) for section in lesson.sections]:
        controller = st.session_state.controllers.get(key)
        if isinstance(controller, TestRunner):
            controller.latest_outcome = None
    for section in lesson.sections:
        for key in [k for k in st.session_state.keys() if isinstance(k, str) and f"_{section.id}" in k]:
            del st.session_state[key]
    st.rerun()


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()
    render_lesson_view()


if __name__ == "__main__":
    main()
