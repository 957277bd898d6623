import logging
import unittest

from adaptive_card.config import PACKAGE_LOGGER, RenderConfig, TemplatePolicy, configure_debug_logging


class TestRenderConfig(unittest.TestCase):

    def test_defaults(self):
        config = RenderConfig.from_env({})
        self.assertEqual(config, RenderConfig())
        self.assertEqual(config.template_policy, TemplatePolicy())
        self.assertFalse(config.trace)

    def test_environment_overrides(self):
        config = RenderConfig.from_env({
            "ADAPTIVE_CARD_TEMPLATE_LOOPS": "0",
            "ADAPTIVE_CARD_TEMPLATE_CONDITIONALS": "false",
            "ADAPTIVE_CARD_TRACE": "1",
            "ADAPTIVE_CARD_TRACE_CAPTURE_INPUTS": "yes",
            "ADAPTIVE_CARD_MAX_VERSION": "1.4",
        })
        self.assertTrue(config.template_policy.enabled)
        self.assertFalse(config.template_policy.allow_loops)
        self.assertFalse(config.template_policy.allow_conditionals)
        self.assertTrue(config.trace)
        self.assertTrue(config.trace_capture_inputs)
        self.assertEqual(config.max_version, "1.4")

    def test_blank_values_keep_defaults(self):
        config = RenderConfig.from_env({"ADAPTIVE_CARD_TEMPLATES": "  "})
        self.assertTrue(config.template_policy.enabled)


class TestDebugLogging(unittest.TestCase):

    def setUp(self):
        self.logger = logging.getLogger(PACKAGE_LOGGER)
        self.handlers = list(self.logger.handlers)
        self.level = self.logger.level

    def tearDown(self):
        self.logger.handlers = self.handlers
        self.logger.setLevel(self.level)

    def test_off_by_default(self):
        self.assertFalse(configure_debug_logging({}))

    def test_enabled_once(self):
        self.assertTrue(configure_debug_logging({"ADAPTIVE_CARD_DEBUG": "1"}))
        self.assertTrue(configure_debug_logging({"ADAPTIVE_CARD_DEBUG": "1"}))
        added = [h for h in self.logger.handlers if h not in self.handlers]
        self.assertEqual(len(added), 1)
        self.assertEqual(self.logger.level, logging.DEBUG)


if __name__ == "__main__":
    unittest.main()
