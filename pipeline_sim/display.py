import matplotlib.pyplot as plt
import numpy as np

MASK32 = 0xFFFFFFFF


def format_word(value):
    """32-bit value as the UI shows it, e.g. 'AABB CCDD'."""
    text = f"{value & MASK32:08X}"
    return f"{text[:4]} {text[4:]}"


def parse_word(value):
    """Accept an int or a display string ('AABB CCDD', '0xAABBCCDD')."""
    if isinstance(value, bool):
        raise ValueError(f"not a word value: {value!r}")
    if isinstance(value, int):
        return value & MASK32
    text = str(value).replace(" ", "")
    if not text:
        raise ValueError("empty word value")
    return int(text, 16) & MASK32


def register_table(values, columns=4):
    """Registers as text rows of `columns` entries."""
    cells = [f"${index:<2} {format_word(value)}" for index, value in enumerate(values)]
    rows = [cells[start:start + columns] for start in range(0, len(cells), columns)]
    return "\n".join("   ".join(row) for row in rows)


def memory_table(pairs):
    return "\n".join(f"{address:04X}: {format_word(value)}" for address, value in pairs)


def plot_registers(values, path=None, title="Register States"):
    """Heat map of the register file, 4 rows of 8. Shown, or saved when `path` is given."""
    data = np.array(values, dtype=np.int64).reshape(-1, 8)
    fig, ax = plt.subplots(figsize=(16, 4))
    ax.imshow(data, cmap="Blues", aspect='auto')
    for row in range(data.shape[0]):
        for col in range(data.shape[1]):
            index = row * 8 + col
            ax.text(col, row, f"${index}\n{format_word(int(data[row, col]))}",
                    ha='center', va='center', color='black', fontsize=8)
    ax.set_title(title)
    ax.axis('off')
    if path:
        fig.savefig(path)
        plt.close(fig)
    else:
        plt.show()
    return fig
