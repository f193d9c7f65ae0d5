# config.py - indoor_nav 统一配置文件
# 修改此文件后，重启程序即可生效

# ============================================================================
# 栅格地图配置
# ============================================================================
GRID_SIZE = 20                     # 栅格边长（N x N）
CELL_SIZE = 40.0                   # 每个栅格的像素尺寸（持久化坐标空间）

# 默认地图：两条交叉的墙（演示/测试用，确定性生成）
DEFAULT_WALL_ROW = 8               # 横墙所在行 (y)
DEFAULT_WALL_COLUMN = 12           # 竖墙所在列 (x)
DEFAULT_WALL_SPAN = (5, 15)        # 墙的范围 [start, end)

# ============================================================================
# 路径规划配置
# ============================================================================
PATH_ALGORITHM = 'astar'           # 'astar' | 'dijkstra'
PATH_PRECHECK_CONNECTIVITY = True  # 搜索前用连通域标记快速判断不可达

# ============================================================================
# 运动跟踪配置（步伐检测 + 航向）
# ============================================================================
# 加速度模长阈值（传感器原生单位，约 m/s²），按设备灵敏度调节
STEP_THRESHOLD = 11.5
STEP_REFRACTORY_MS = 300           # 两步之间的最小间隔（毫秒）

# ============================================================================
# 语音指令配置
# ============================================================================
INSTRUCTION_STRAIGHT_TOLERANCE = 30.0   # |差角| < 30° 视为直行
INSTRUCTION_TURN_LIMIT = 150.0          # |差角| >= 150° 视为掉头

# ============================================================================
# 数据存储配置
# ============================================================================
DATA_DIR = 'data/store'
APP_ID = 'default-app-id'
DEFAULT_USER_ID = 'local-user'

# ============================================================================
# 传感器串口配置（手机通过蓝牙SPP/串口桥接）
# ============================================================================
SERIAL_PORT = '/dev/rfcomm0'       # Windows: 'COM5', Linux: '/dev/rfcomm0'
BAUDRATE = 115200
TIMEOUT = 0.1

# ============================================================================
# 语音输出配置
# ============================================================================
VOICE_ENGINE = 'log'               # 'log' | 'espeak'
ESPEAK_VOICE = 'en'
ESPEAK_RATE = 160                  # 每分钟单词数

# ============================================================================
# 日志配置
# ============================================================================
LOG_DIR = 'data/logs'
LOG_LEVEL = 'INFO'                 # DEBUG | INFO | WARNING | ERROR
ENABLE_FILE_LOG = True
ENABLE_CONSOLE_LOG = True
LOG_FORMAT = '[%(asctime)s] %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'

# ============================================================================
# 数据记录配置
# ============================================================================
RECORDING_DIR = 'data/recordings'

# ============================================================================
# 辅助函数
# ============================================================================

def get_config_summary():
    """获取配置摘要（用于调试）"""
    return f"""
╔════════════════════════════════════════════════════════════════╗
║                    indoor_nav 配置摘要                         ║
╠════════════════════════════════════════════════════════════════╣
║ 地图: {GRID_SIZE}x{GRID_SIZE} @ {CELL_SIZE}px/格
║ 规划: {PATH_ALGORITHM}, 连通预检={'启用' if PATH_PRECHECK_CONNECTIVITY else '禁用'}
║ 步伐: 阈值={STEP_THRESHOLD}, 不应期={STEP_REFRACTORY_MS}ms
║ 指令: 直行<{INSTRUCTION_STRAIGHT_TOLERANCE}°, 掉头>={INSTRUCTION_TURN_LIMIT}°
║ 存储: {DATA_DIR} ({APP_ID})
║ 串口: {SERIAL_PORT} @ {BAUDRATE}
║ 语音: {VOICE_ENGINE}
║ 日志: {LOG_LEVEL} -> {LOG_DIR}
╚════════════════════════════════════════════════════════════════╝
    """


def validate_config():
    """验证配置参数的合理性"""
    errors = []
    warnings = []

    # 检查关键参数
    if GRID_SIZE <= 0:
        errors.append("GRID_SIZE 必须大于0")
    if CELL_SIZE <= 0:
        errors.append("CELL_SIZE 必须大于0")
    if STEP_THRESHOLD <= 0:
        errors.append("STEP_THRESHOLD 必须大于0")
    if STEP_REFRACTORY_MS < 0:
        errors.append("STEP_REFRACTORY_MS 不能为负")
    if PATH_ALGORITHM not in ('astar', 'dijkstra'):
        errors.append(f"PATH_ALGORITHM={PATH_ALGORITHM} 无效，请使用 'astar' 或 'dijkstra'")
    if not 0 < INSTRUCTION_STRAIGHT_TOLERANCE < INSTRUCTION_TURN_LIMIT <= 180:
        errors.append("需要满足 0 < INSTRUCTION_STRAIGHT_TOLERANCE < INSTRUCTION_TURN_LIMIT <= 180")

    # 检查合理性
    _, span_end = DEFAULT_WALL_SPAN
    if span_end > GRID_SIZE or max(DEFAULT_WALL_ROW, DEFAULT_WALL_COLUMN) >= GRID_SIZE:
        warnings.append("默认墙超出地图范围，将被截断")
    if STEP_THRESHOLD < 9.8:
        warnings.append(f"STEP_THRESHOLD={STEP_THRESHOLD} 低于重力加速度，静止时也会误检步伐")
    if STEP_REFRACTORY_MS > 1000:
        warnings.append(f"STEP_REFRACTORY_MS={STEP_REFRACTORY_MS}ms 过长，正常步频约 2 步/秒")

    # 打印结果
    if errors:
        print("❌ 配置错误:")
        for err in errors:
            print(f"   - {err}")

    if warnings:
        print("⚠️  配置警告:")
        for warn in warnings:
            print(f"   - {warn}")

    if not errors and not warnings:
        print("✅ 配置验证通过")

    return len(errors) == 0


if __name__ == '__main__':
    # 如果直接运行此文件，显示配置摘要
    print(get_config_summary())
    validate_config()
