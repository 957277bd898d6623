import unittest

from adaptive_card.config import TemplatePolicy
from adaptive_card.errors import TemplateError
from adaptive_card.handlebars import HandlebarsRenderer, is_truthy


class TestHandlebarsRendering(unittest.TestCase):

    def setUp(self):
        self.renderer = HandlebarsRenderer()
        self.root = {
            "name": "Ada",
            "title": "T",
            "flag": False,
            "user": {"name": "Grace"},
            "items": ["a", "b"],
            "people": [{"name": "x"}, {"name": "y"}],
            "obj": {"a": 1, "b": 2},
            "empty": [],
        }

    def render(self, text):
        return self.renderer.render(text, self.root)[0]

    def test_variable(self):
        self.assertEqual(self.renderer.render("Hi {{name}}", self.root), ("Hi Ada", 1))
        self.assertEqual(self.render("{{ user.name }}"), "Grace")
        self.assertEqual(self.render("{{{name}}}"), "Ada")

    def test_missing_renders_empty(self):
        self.assertEqual(self.render("a{{nope}}b"), "ab")

    def test_objects_render_as_json(self):
        self.assertEqual(self.render("{{obj}}"), '{"a":1,"b":2}')

    def test_if_else(self):
        self.assertEqual(self.render("{{#if flag}}yes{{else}}no{{/if}}"), "no")
        self.assertEqual(self.render("{{#if name}}yes{{else}}no{{/if}}"), "yes")
        self.assertEqual(self.render("{{#if flag}}yes{{/if}}"), "")

    def test_unless(self):
        self.assertEqual(self.render("{{#unless flag}}off{{/unless}}"), "off")
        self.assertEqual(self.render("{{#unless name}}off{{else}}on{{/unless}}"), "on")

    def test_each_list(self):
        self.assertEqual(self.render("{{#each items}}{{@index}}:{{this}};{{/each}}"), "0:a;1:b;")

    def test_each_object_keys(self):
        self.assertEqual(self.render("{{#each obj}}{{@key}}={{this}} {{/each}}"), "a=1 b=2 ")

    def test_first_and_last(self):
        text = "{{#each items}}{{#if @first}}[{{/if}}{{this}}{{#if @last}}]{{/if}}{{/each}}"
        self.assertEqual(self.render(text), "[ab]")

    def test_each_else_on_empty(self):
        self.assertEqual(self.render("{{#each empty}}x{{else}}none{{/each}}"), "none")
        self.assertEqual(self.render("{{#each nope}}x{{else}}none{{/each}}"), "none")

    def test_outer_scope_lookup(self):
        self.assertEqual(self.render("{{#each people}}{{title}}-{{name}};{{/each}}"), "T-x;T-y;")
        self.assertEqual(self.render("{{#each people}}{{../name}}{{/each}}"), "AdaAda")

    def test_nested_blocks(self):
        text = "{{#each people}}{{#if name}}<{{name}}>{{/if}}{{/each}}"
        self.assertEqual(self.render(text), "<x><y>")

    def test_malformed_templates_raise(self):
        for text in ("{{#if flag}}no close", "{{#if flag}}a{{/each}}", "{{unclosed"):
            with self.assertRaises(TemplateError):
                self.renderer.render(text, self.root)

    def test_policy_blocks_conditionals(self):
        renderer = HandlebarsRenderer(TemplatePolicy(allow_conditionals=False))
        with self.assertRaises(TemplateError):
            renderer.render("{{#if flag}}y{{/if}}", self.root)
        self.assertEqual(renderer.render("{{name}}", self.root)[0], "Ada")

    def test_policy_blocks_loops(self):
        renderer = HandlebarsRenderer(TemplatePolicy(allow_loops=False))
        with self.assertRaises(TemplateError):
            renderer.render("{{#each items}}{{this}}{{/each}}", self.root)

    def test_iteration_limit(self):
        renderer = HandlebarsRenderer(TemplatePolicy(max_iterations=1))
        with self.assertRaises(TemplateError):
            renderer.render("{{#each items}}{{this}}{{/each}}", self.root)

    def test_disabled_policy_raises(self):
        renderer = HandlebarsRenderer(TemplatePolicy(enabled=False))
        with self.assertRaises(TemplateError):
            renderer.render("{{name}}", self.root)


class TestTruthiness(unittest.TestCase):

    def test_falsy_values(self):
        for value in (None, False, "", 0, 0.0, []):
            self.assertFalse(is_truthy(value), value)

    def test_truthy_values(self):
        for value in (True, "0", 1, -1, [0], {}, {"a": 1}):
            self.assertTrue(is_truthy(value), value)


if __name__ == "__main__":
    unittest.main()
