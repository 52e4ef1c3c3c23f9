from deck_generator.prompts import build_brand_kit_prompt, build_image_prompt, build_presentation_prompt


def test_presentation_prompt_names_exact_count_and_ids():
    prompt = build_presentation_prompt("Onboarding plan for new engineers", 7)

    assert 'USER REQUEST: "Onboarding plan for new engineers"' in prompt
    assert "EXACTLY 7 slides" in prompt
    assert "slide-1 to slide-7" in prompt


def test_presentation_prompt_quotes_field_limits():
    prompt = build_presentation_prompt("Topic", 5)

    assert "3-5 bullets per slide" in prompt
    assert "5-120 characters" in prompt
    assert "script: 100-1000 characters" in prompt
    assert '"title"' in prompt and '"conclusion"' in prompt
    assert "no code fences" in prompt


def test_presentation_prompt_is_deterministic():
    assert build_presentation_prompt("Same", 4) == build_presentation_prompt("Same", 4)


def test_brand_kit_prompt_requests_json_palette():
    prompt = build_brand_kit_prompt("Eco-friendly coffee roaster")

    assert 'BRAND: "Eco-friendly coffee roaster"' in prompt
    assert '"primary": "#HEXcode"' in prompt
    assert '"heading": "Font Name"' in prompt


def test_image_prompt_includes_slide_context():
    prompt = build_image_prompt("Market growth", "Bar chart rising to the right")

    assert 'SLIDE: "Market growth"' in prompt
    assert 'REQUIREMENTS: "Bar chart rising to the right"' in prompt
