from data_designer.plugins.plugin import Plugin, PluginType

aigard_plugin = Plugin(
    config_qualified_name="data_designer_aigard.config.AigardColumnConfig",
    impl_qualified_name="data_designer_aigard.generator.AigardColumnGenerator",
    plugin_type=PluginType.COLUMN_GENERATOR,
)
