from attention_engine import AttentionFocus, AttentionWeight


WEIGHTS = [
    AttentionWeight(2, 0, 0.5),
    AttentionWeight(2, 1, 0.03),
    AttentionWeight(2, 2, 0.47),
    AttentionWeight(1, 1, 0.9),
]


def test_no_reference_means_zero():
    focus = AttentionFocus(WEIGHTS)
    assert focus.reference is None
    assert focus.intensities(3) == [0.0, 0.0, 0.0]
    assert focus.highlighted_edges() == []


def test_hover_takes_precedence_over_pin():
    focus = AttentionFocus([AttentionWeight(2, 0, 0.5)])
    focus.select(1)
    focus.hover(2)
    assert focus.intensity_for(0) == 0.5


def test_pin_applies_after_hover_leaves():
    focus = AttentionFocus(WEIGHTS)
    focus.select(1)
    focus.hover(2)
    focus.hover(None)
    assert focus.reference == 1
    assert focus.intensity_for(1) == 0.9
    assert focus.intensity_for(0) == 0.0


def test_select_twice_unpins():
    focus = AttentionFocus(WEIGHTS)
    focus.select(2)
    focus.select(2)
    assert focus.active is None


def test_weak_edges_are_not_highlighted():
    focus = AttentionFocus(WEIGHTS)
    focus.hover(2)
    assert focus.intensity_for(1) == 0.03
    assert [w.target_index for w in focus.highlighted_edges()] == [0, 2]


def test_new_weights_clear_focus():
    focus = AttentionFocus(WEIGHTS)
    focus.hover(2)
    focus.select(1)
    focus.set_weights([AttentionWeight(0, 0, 1.0)])
    assert focus.reference is None
