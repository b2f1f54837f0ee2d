"""Unit tests for the specification parser"""
import pytest

from specbind.exceptions import ParseError
from specbind.parser.blocks import Form, Grid
from specbind.parser.feature_parser import (
    FeatureParser,
    KeywordPatterns,
    ParserState,
    _DocumentReader,
    expand_paths,
    parse_text,
)
from specbind.parser.languages import LanguageTable, default_languages
from specbind.parser.models import SpecificationDocument, StepType
from specbind.parser.text_lines import get_lines


def test_parse_login_feature(parser, login_spec):
    document = parser.parse(login_spec)

    assert document.feature.name == 'Login'
    assert len(document.scenarios) == 1

    scenario = document.scenarios[0]
    assert scenario.name == 'Valid login'
    assert [step.type for step in scenario.steps] == [StepType.GIVEN, StepType.WHEN, StepType.THEN]
    assert all(step.block is None for step in scenario.steps)
    assert scenario.steps[0].text == 'Given a registered user'
    assert scenario.steps[0].body == 'a registered user'


def test_parsing_twice_gives_equal_documents(parser, login_spec):
    assert parser.parse(login_spec) == parser.parse(login_spec)


def test_feature_owns_the_document_scenarios(parser, login_spec):
    document = parser.parse(login_spec)

    assert document.feature.scenarios is document.scenarios
    assert document.feature.get_scenario('Valid login') is document.scenarios[0]


def test_feature_description_and_headers(parser):
    document = parser.parse("""
        @ignore: not ready yet
        Feature: Checkout
          In order to pay
          As a customer
        @owner: payments
        Scenario: Pay
        Given a cart
    """)

    feature = document.feature
    assert feature.description == 'In order to pay\nAs a customer'
    assert feature.headers == {'ignore': 'not ready yet', 'owner': 'payments'}


def test_bare_header_has_empty_value(parser):
    document = parser.parse("Feature: x\n@ignore\nScenario: y\nGiven z")

    assert document.feature.headers['ignore'] == ''


def test_document_without_feature(parser):
    document = parser.parse("Scenario: One\nGiven a\nScenario: Two\nThen b")

    assert document.feature is None
    assert document.scenario_names == ['One', 'Two']


def test_feature_without_scenarios_keeps_whole_description(parser):
    document = parser.parse("Feature: Lonely\nline one\nline two")

    assert document.feature.description == 'line one\nline two'
    assert document.scenarios == []


def test_and_inherits_previous_step_type(parser):
    document = parser.parse("Scenario: s\nGiven a\nAnd b\nWhen c\nAnd d\nBut e\nThen f")

    types = [step.type for step in document.scenarios[0].steps]
    assert types == [StepType.GIVEN, StepType.GIVEN, StepType.WHEN, StepType.WHEN, StepType.WHEN, StepType.THEN]
    assert document.scenarios[0].steps[1].keyword == 'And'
    assert document.scenarios[0].steps[1].body == 'b'


def test_step_type_resets_at_each_scenario(parser):
    with pytest.raises(ParseError):
        parser.parse("Scenario: one\nGiven a\nScenario: two\nAnd b")


def test_and_as_first_step_is_a_parse_error(parser):
    with pytest.raises(ParseError, match='"And" steps cannot appear'):
        parser.parse("Feature: f\nScenario: s\nAnd something\nThen done")


def test_unrecognized_step_is_a_parse_error(parser):
    with pytest.raises(ParseError, match='Unrecognized step') as info:
        parser.parse("Scenario: s\nGiven a\nPerhaps b")

    assert info.value.line == 'Perhaps b'


def test_step_before_scenario_is_a_parse_error(parser):
    with pytest.raises(ParseError, match='before a scenario'):
        parser.parse("Given a\nScenario: s")


def test_second_feature_is_a_parse_error(parser):
    with pytest.raises(ParseError):
        parser.parse("Feature: a\nScenario: s\nGiven x\nFeature: b")


def test_grid_with_mismatched_columns_is_a_parse_error(parser):
    text = """
        Scenario: stock
        Given the stock
          | product | quantity |
          | widget  |
    """

    with pytest.raises(ParseError):
        parser.parse(text)


def test_keywords_are_case_insensitive_and_scenarios_may_be_numbered(parser):
    document = parser.parse("feature: f\nSCENARIO 2: numbered\ngiven a\nWHEN b\nthen c")

    assert document.scenarios[0].name == 'numbered'
    assert [s.type for s in document.scenarios[0].steps] == [StepType.GIVEN, StepType.WHEN, StepType.THEN]


def test_blocks_are_attached_to_steps_and_skipped(parser):
    document = parser.parse("""
        Scenario: order
        Given the following order
          : product  : widget
          : quantity : 3
        And the stock is
          | product | quantity |
          | widget  | 10       |
        When the order ships
        Then nothing is left
    """)

    steps = document.scenarios[0].steps
    assert len(steps) == 4
    assert isinstance(steps[0].block, Form)
    assert steps[0].block.to_dict() == {'product': 'widget', 'quantity': '3'}
    assert isinstance(steps[1].block, Grid)
    assert steps[1].type is StepType.GIVEN
    assert steps[1].block.rows == [['widget', '10']]
    assert steps[2].block is None


def test_comments_between_block_lines_are_ignored(parser):
    document = parser.parse("Scenario: s\nGiven x\n  : a : 1\n  # note\n  : b : 2\nThen y")

    assert document.scenarios[0].steps[0].block.to_dict() == {'a': '1', 'b': '2'}


def test_localized_keywords(parser):
    document = parser.parse("""
        # language: fr
        Fonctionnalité: Connexion
        Scénario: Connexion valide
        Soit un utilisateur inscrit
        Et un mot de passe
        Quand il se connecte
        Alors il voit le tableau de bord
    """)

    assert document.language == 'fr'
    assert document.feature.name == 'Connexion'
    steps = document.scenarios[0].steps
    assert [s.type for s in steps] == [StepType.GIVEN, StepType.GIVEN, StepType.WHEN, StepType.THEN]
    assert steps[0].body == 'un utilisateur inscrit'


def test_multi_word_localized_keyword(parser):
    document = parser.parse("# language: fr\nScénario: s\nÉtant donné un panier\nAlors fini")

    assert document.scenarios[0].steps[0].keyword == 'Étant donné'
    assert document.scenarios[0].steps[0].body == 'un panier'


def test_unknown_language_falls_back_to_english(parser, login_spec):
    document = parser.parse("# language: xx\n" + login_spec)

    assert document.language == 'en'
    assert document.feature.name == 'Login'


def test_custom_language_table():
    languages = LanguageTable({
        'en': {'feature': 'Feature', 'scenario': 'Scenario', 'given': 'Given',
               'when': 'When', 'then': 'Then', 'and': 'And'},
        'pirate': {'feature': 'Ahoy matey!', 'scenario': 'Heave to', 'given': 'Gangway!',
                   'when': 'Blimey!', 'then': 'Let go and haul', 'and': 'Aye'},
    })
    text = "# language: pirate\nAhoy matey!: Treasure\nHeave to: dig\nGangway! a map\nAye a shovel\nBlimey! we dig\nLet go and haul gold"

    document = FeatureParser(languages).parse(text)

    assert document.feature.name == 'Treasure'
    assert [s.type for s in document.scenarios[0].steps] == [
        StepType.GIVEN, StepType.GIVEN, StepType.WHEN, StepType.THEN,
    ]


def test_parse_file_and_load_features(parser, write_file, login_spec):
    first = write_file('features/login.txt', login_spec)
    write_file('features/nested/other.feature', "Scenario: other\nGiven x")
    write_file('features/notes.md', "not a specification")

    document = parser.parse_file(first)
    assert document.source == str(first)

    documents = parser.load_features([str(first.parent)])
    assert [d.scenario_names for d in documents] == [['Valid login'], ['other']]

    assert parser.load_features([str(first.parent / '*.txt')], parallel=2)[0] == document


def test_parse_file_error_names_the_file(parser, write_file):
    path = write_file('broken.txt', "Scenario: s\nAnd oops")

    with pytest.raises(ParseError, match='broken.txt'):
        parser.parse_file(path)


def test_expand_paths_removes_duplicates(write_file):
    path = write_file('a.txt', "Scenario: s\nGiven x")

    assert expand_paths([str(path), str(path.parent / '*.txt')]) == [path]


def test_parse_text_helper(login_spec):
    assert parse_text(login_spec).feature.name == 'Login'


def test_to_dict(parser):
    document = parser.parse("Feature: f\nScenario: s\nGiven x\n  : a : 1")

    assert document.to_dict() == {
        'language': 'en',
        'feature': {'name': 'f', 'description': '', 'headers': {}},
        'scenarios': [{'name': 's', 'steps': [{'type': 'given', 'text': 'Given x', 'form': [['a', '1']]}]}],
    }


def test_header_lines_are_only_read_before_the_first_scenario(parser):
    with pytest.raises(ParseError, match='Unrecognized step'):
        parser.parse("Feature: f\nScenario: s\nGiven a\n@late: x")


@pytest.mark.parametrize('text, state', [
    ("", ParserState.NO_SCENARIO),
    ("Feature: f\nsome description", ParserState.NO_SCENARIO),
    ("Feature: f\nScenario: s\nGiven a", ParserState.IN_SCENARIO),
])
def test_reader_state_after_reading(text, state):
    languages = default_languages()
    reader = _DocumentReader(get_lines(text), KeywordPatterns(languages.get('en')), SpecificationDocument())

    reader.read()

    assert reader.state is state
