from celebrity_corpus.similarity import normalize_tokens, similarity, title_similarity


def test_similarity_identical():
    assert similarity("Elon Musk speaks at Tesla event", "Elon Musk speaks at Tesla event") == 1.0


def test_similarity_empty_inputs():
    assert similarity("", "anything") == 0
    assert similarity("Elon Musk speaks", "") == 0
    assert similarity(None, "anything") == 0


def test_similarity_symmetric():
    pairs = [
        ("The Road Ahead", "The Road Ahead: Updated Edition"),
        ("alpha beta gamma", "gamma delta"),
        ("Steve Jobs", "Jobs, Steve: a biography"),
    ]
    for a, b in pairs:
        assert similarity(a, b) == similarity(b, a)


def test_similarity_only_short_tokens_is_zero():
    # Every token is a single character, so nothing survives normalization
    assert similarity("a b c", "a b c") == 0.0


def test_similarity_partial_overlap():
    # {alpha, beta, gamma, delta} vs {alpha, beta, gamma, epsilon}: 3 / 5
    assert similarity("alpha beta gamma delta", "alpha beta gamma epsilon") == 0.6


def test_normalize_strips_punctuation_and_case():
    assert normalize_tokens("Hello, World! It's me.") == {"hello", "world", "its", "me"}


def test_normalize_keeps_cjk():
    assert normalize_tokens("马斯克 传记") == {"马斯克", "传记"}


def test_title_similarity_uses_best_title():
    score = title_similarity("The Everything Store", "一网打尽 贝索斯", "一网打尽 贝索斯")
    assert score == 1.0


def test_title_similarity_missing_free_title():
    assert title_similarity("The Everything Store", None, None) == 0.0
